"""Filtering, sorting and paging over a SQLite minifilter operation log."""

__version__ = "0.1.0"