"""Users API: CRUD over a file-backed collection of user records."""

__version__ = "1.0.0"
