"""Typed failures raised by the engine, storage and commander layers.

Every error carries a stable ``kind`` string.  The HTTP layer sends it on
the wire and the remote clients map it back to the same class, so callers
can ``except NotFoundError`` regardless of the backend they talk to.
"""

from __future__ import annotations


class HyperlogError(Exception):
    """Base class for all hyperlog failures."""

    kind = "error"


class NotFoundError(HyperlogError):
    """A root or path segment does not exist."""

    kind = "not_found"


class AlreadyExistsError(HyperlogError):
    """Duplicate root, or a move destination already holds the name."""

    kind = "already_exists"


class InvalidOperationError(HyperlogError):
    """The node at the path has the wrong kind for the requested action."""

    kind = "invalid_operation"


class LockedError(HyperlogError):
    """A fresh advisory lock is held by another handle or process."""

    kind = "locked"


class StorageIOError(HyperlogError):
    """Filesystem failure reading or writing the snapshot or lock file."""

    kind = "io"


class ParseError(HyperlogError):
    """A snapshot or wire payload is not a valid graph."""

    kind = "parse"


class TransportError(HyperlogError):
    """The remote server could not be reached or answered unexpectedly."""

    kind = "transport"


_BY_KIND: dict[str, type[HyperlogError]] = {
    cls.kind: cls
    for cls in (
        NotFoundError,
        AlreadyExistsError,
        InvalidOperationError,
        LockedError,
        StorageIOError,
        ParseError,
        TransportError,
    )
}


def error_for_kind(kind: str | None) -> type[HyperlogError]:
    """Return the error class registered for *kind* (``HyperlogError`` if unknown)."""
    return _BY_KIND.get(kind or "", HyperlogError)
