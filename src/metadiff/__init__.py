"""metadiff - structural API/ABI diff of compiled modules."""

__version__ = "0.1.0"
