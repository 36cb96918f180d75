"""
Context - Read-only snapshot of the accumulated data handed to each step.
"""

from collections.abc import Mapping


class Context(Mapping):
    """
    Snapshot of the run's data at the moment a step is invoked.

    Holds the process input merged with every result returned by the steps
    before this one. Steps do not mutate it: they return a mapping of
    updates and the engine performs the merge.
    """

    __slots__ = ('_data',)

    def __init__(self, data=None):
        """
        Initialize the Context with a copy of the given data.

        Args:
            data: Mapping of the current run data (optional)
        """
        self._data = dict(data) if data is not None else {}

    def __getitem__(self, key):
        return self._data[key]

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)

    def has(self, key):
        """
        Check if a key exists in the context.

        Args:
            key: The key to check

        Returns:
            True if key exists, False otherwise
        """
        return key in self._data

    def to_dict(self):
        """Return a mutable copy of the context data."""
        return self._data.copy()

    def __repr__(self):
        return f"Context({self._data})"

    def __str__(self):
        return str(self._data)
