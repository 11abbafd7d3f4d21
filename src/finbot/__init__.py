"""Personal finance assistant bot."""

__version__ = "1.0.0"
