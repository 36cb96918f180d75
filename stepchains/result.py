"""
Result - The outcome of a process run, and the exit signal steps use to end it early.
"""

from collections.abc import Mapping
from types import MappingProxyType

from .errors import InvalidExitPayloadError


class ExitMarker:
    """
    Signal returned by a step to terminate the whole run after it completes.

    An ExitMarker is deliberately not a Mapping, so it can never be confused
    with an ordinary result. Its ``payload`` fields are merged into the
    context before the run resolves.
    """

    __slots__ = ('_payload',)

    def __init__(self, payload=None):
        """
        Initialize an ExitMarker.

        Args:
            payload: Optional mapping of extra fields to merge into the context
        """
        self._payload = MappingProxyType(dict(payload or {}))

    @property
    def payload(self):
        """Read-only view of the extra fields carried by this marker."""
        return self._payload

    def __repr__(self):
        if self._payload:
            return f"ExitMarker({dict(self._payload)})"
        return "ExitMarker()"


class ExitSignal(ExitMarker):
    """
    The ``exit`` sentinel.

    Returned as is, it ends the run with no extra data. Called, it builds a
    new ExitMarker carrying the given fields:

        return exit
        return exit({'reason': 'out of stock'})
        return exit(reason='out of stock')
    """

    __slots__ = ()

    def __call__(self, payload=None, /, **fields):
        if payload is not None and not isinstance(payload, Mapping):
            raise InvalidExitPayloadError(
                f"exit() payload must be a mapping, got {type(payload).__name__}"
            )
        merged = dict(payload or {})
        merged.update(fields)
        return ExitMarker(merged)

    def __repr__(self):
        return "exit"


exit = ExitSignal()


def is_exit(value):
    """Return True if a step result requests termination of the run."""
    return isinstance(value, ExitMarker)


class Result(dict):
    """
    Final context of a process run.

    A plain dict of the merged user fields. Whether the run was ended by an
    exit signal is kept as an attribute, not a key, so it never shows up
    among the real result fields.
    """

    def __init__(self, data=None, exited=False):
        """
        Initialize a Result.

        Args:
            data: Mapping of the merged context fields
            exited: True if a step ended the run with an exit signal
        """
        super().__init__(data or {})
        self.exited = exited

    def is_exited(self):
        """Return True if the run was terminated early by an exit signal."""
        return self.exited

    def is_completed(self):
        """Return True if every step of the run was executed."""
        return not self.exited

    def to_dict(self):
        """Return a plain dict copy of the result fields."""
        return dict(self)

    def __repr__(self):
        if self.exited:
            return f"Result.exited({dict.__repr__(self)})"
        return f"Result({dict.__repr__(self)})"
