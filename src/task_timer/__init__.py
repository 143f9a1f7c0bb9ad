"""Local SQLite storage and request handlers for a desktop task timer."""

__version__ = "0.1.0"
