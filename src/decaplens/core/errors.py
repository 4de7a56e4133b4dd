"""Exception hierarchy for decaplens.

Replaying a history is all-or-nothing: an inconsistent edit aborts the fold
rather than being skipped, since tolerating it would corrupt the per-field
accessor bookkeeping.
"""

from __future__ import annotations


class DecaplensError(Exception):
    """Base class for every error raised by decaplens."""


class InvalidHistoryError(DecaplensError):
    """An edit does not apply to the project state it is replayed against.

    Raised for adding an id that is already present, removing or editing an id
    that is absent, and similar contract violations of the history provider.
    """


class RepositoryNotFoundError(DecaplensError, FileNotFoundError):
    """The persisted project history does not exist at the expected location."""


__all__ = ["DecaplensError", "InvalidHistoryError", "RepositoryNotFoundError"]
