"""metadiff command-line interface."""
