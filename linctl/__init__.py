"""linctl — a command-line client for Linear."""

__version__ = "0.1.0"
