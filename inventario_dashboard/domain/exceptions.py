"""
Domain exceptions for the inventory dashboard core.

Network-facing operations turn failures into ``DataLoadError`` whose message
is shown to the user as-is; ``ValidationError`` marks programmer errors such
as malformed patches and is never caught by the store.
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for every domain exception.
    """

    pass


class ValidationError(DomainError):
    """
    Raised when an input breaks a structural rule.

    Examples: an assignment patch without pallet codes, an unknown list
    filter key, a payload missing required columns.
    """

    pass


class DataLoadError(DomainError):
    """
    Raised when a bulk inventory read or an evolution fetch fails.

    The message is user-facing; the original exception is chained as
    ``__cause__``.
    """

    pass


class MutationError(DomainError):
    """
    Raised when a backend assignment or release call fails.

    Callers must not apply the optimistic patch after this error.
    """

    pass
