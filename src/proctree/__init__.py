"""proctree - process hierarchy printer and a miniature verb/path router."""

__version__ = "0.1.0"
