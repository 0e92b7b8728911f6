"""brewcheck — validate package formula records."""

__version__ = "0.1.0"
