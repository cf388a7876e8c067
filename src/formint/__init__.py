"""formint - form structure synthesis from document-analysis block graphs."""

__version__ = "0.1.0"
