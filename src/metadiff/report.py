"""Render change sets and batch summaries as annotated text.

Rendering is pure: ``render_*`` functions return plain lines and
``style_for`` maps a change kind to a rich style. ``Reporter`` prints them
to a rich Console.
"""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from metadiff.core.formatting import pluralize
from metadiff.diff.models import BatchSummary, ChangeKind, ChangeRecord, ChangeSet, PairResult

TYPE_INDENT = "   "
MEMBER_INDENT = "     "

_MARKERS = {
    ChangeKind.ADDED_TYPE: "+",
    ChangeKind.MODIFIED_TYPE: "*",
    ChangeKind.REMOVED_TYPE: "-",
    ChangeKind.ADDED_MEMBER: "+",
    ChangeKind.REMOVED_MEMBER: "-",
}

_STYLES = {
    ChangeKind.ADDED_TYPE: "green",
    ChangeKind.MODIFIED_TYPE: "yellow",
    ChangeKind.REMOVED_TYPE: "red",
    ChangeKind.ADDED_MEMBER: "green",
    ChangeKind.REMOVED_MEMBER: "red",
}

WARNING_STYLE = "magenta"

# (text, style) pairs; style None means default
StyledLine = tuple[str, str | None]


def marker_for(kind: ChangeKind) -> str:
    return _MARKERS[kind]


def style_for(kind: ChangeKind) -> str:
    return _STYLES[kind]


def render_record(record: ChangeRecord) -> str:
    """``   *Ns.Foo`` for type records, ``     -M:...`` for member records."""
    indent = TYPE_INDENT if record.kind.is_type_level else MEMBER_INDENT
    return f"{indent}{marker_for(record.kind)}{record.key}"


def render_change_set(change_set: ChangeSet) -> list[str]:
    return [render_record(record) for record in change_set.records()]


def summary_lines(summary: BatchSummary) -> list[StyledLine]:
    """Styled lines of the end-of-batch summary block."""
    lines: list[StyledLine] = [("", None), ("Diff complete!", None)]

    if summary.warnings or summary.failures:
        lines += [("", None), ("Warnings:", None)]
        lines += [(warning, WARNING_STYLE) for warning in summary.warnings]
        if summary.failures:
            lines.append((f"Failed to load {pluralize(summary.files_failed, 'file')}:", None))
            lines += [(f"  {failure}", WARNING_STYLE) for failure in summary.failures]

    lines += [
        ("", None),
        (f"Processed {summary.files_processed} assemblies with", None),
        (f"  {summary.added_types} new types", style_for(ChangeKind.ADDED_TYPE)),
        (f"  {summary.removed_types} deleted types", style_for(ChangeKind.REMOVED_TYPE)),
        (
            f"  {summary.modified_types} modified types containing",
            style_for(ChangeKind.MODIFIED_TYPE),
        ),
        (f"    {summary.added_members} new members", style_for(ChangeKind.ADDED_MEMBER)),
        (f"    {summary.removed_members} deleted members", style_for(ChangeKind.REMOVED_MEMBER)),
    ]
    return lines


def render_summary(summary: BatchSummary) -> list[str]:
    return [text for text, _style in summary_lines(summary)]


class Reporter:
    """Prints diff output to a rich Console (stdout by default)."""

    def __init__(self, console: Console | None = None, *, color: bool = True) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True, no_color=not color)

    def _line(self, text: str, style: str | None = None) -> None:
        self.console.print(Text(text, style=style or ""))

    def file_header(self, name: str) -> None:
        self._line(name)

    def change_set(self, change_set: ChangeSet) -> None:
        for record in change_set.records():
            self._line(render_record(record), style_for(record.kind))

    def pair_result(self, result: PairResult) -> None:
        """Header plus change lines for one pair, or its load failure."""
        self.file_header(result.relative_path)
        if result.change_set is not None:
            self.change_set(result.change_set)
        else:
            self._line(f"   ! {result.error}", WARNING_STYLE)

    def summary(self, summary: BatchSummary) -> None:
        for text, style in summary_lines(summary):
            self._line(text, style)
