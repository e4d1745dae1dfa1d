"""Apply partial modifications, addressed by key paths, to typed values."""

__version__ = "0.1.0"
