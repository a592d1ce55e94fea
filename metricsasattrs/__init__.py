"""Copy cached metric values onto spans and log records as attributes."""

__version__ = "0.1.0"