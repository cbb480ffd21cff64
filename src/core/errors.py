"""feedprep exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class FeedPrepError(Exception):
    """Base exception for all feedprep failures."""


class FeedConfigError(FeedPrepError):
    """Raised for invalid runtime configuration."""


class FeedProfileError(FeedPrepError):
    """Raised for invalid or unsupported feed profile files."""


class FeedIngestError(FeedPrepError):
    """Raised for input reading and parsing failures."""


class InputNotFoundError(FeedIngestError):
    """Raised when a referenced input path does not exist."""


class MalformedInputError(FeedIngestError):
    """Raised when input content cannot be decoded into a table."""


class EmptyInputError(MalformedInputError):
    """Raised when input content is blank after trimming."""


class FeedQueryError(FeedPrepError):
    """Raised for remote query execution and export failures."""


class FeedStoreError(FeedPrepError):
    """Raised for artifact persistence failures."""
