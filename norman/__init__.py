"""norman - Database catalog mapping."""

__version__ = "0.1.0"
