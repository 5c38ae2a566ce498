"""
errors.py - Exception types for Timekeeper

Storage failures are caught near the user action that caused them and
logged; nothing here is retried.
"""


class StorageError(Exception):
    """Opening, querying or writing the local database failed."""


class ParseError(ValueError):
    """A stored date or timestamp could not be parsed.

    Never escapes the data layer on its own: db.py wraps it in a
    StorageError so callers only have one failure type to handle.
    """


class ConfigLoadError(Exception):
    """The properties file is missing required structure or unreadable."""
