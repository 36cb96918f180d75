"""
Step - Units of work in a process, and the flattening of nested step groups.
"""

import inspect

from .errors import InvalidStepError


class Step:
    """
    Base class for class-based steps.

    A step receives a read-only Context and returns a mapping of updates,
    an exit marker, or None. ``execute`` may be a coroutine function.

    Steps should be stateless - all state flows through the context.
    """

    def execute(self, context):
        """
        Execute the step logic.

        Args:
            context: Context snapshot of the run data

        Returns:
            Mapping of updates, an ExitMarker, None, or an awaitable of one of these

        Raises:
            NotImplementedError: This method must be implemented by subclasses
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement execute()")

    def __call__(self, context):
        return self.execute(context)

    @property
    def name(self):
        return self.__class__.__name__

    def __repr__(self):
        return f"{self.__class__.__name__}()"

    def __str__(self):
        return self.name


class FunctionStep(Step):
    """
    Step backed by a callable or by an already pending awaitable.

    A callable is invoked with the context. An awaitable takes no argument:
    it is awaited once and its resolved value is used as the result.
    """

    __slots__ = ('target',)

    def __init__(self, target):
        self.target = target

    def execute(self, context):
        if inspect.isawaitable(self.target):
            return self.target
        if callable(self.target):
            return self.target(context)
        raise InvalidStepError(
            f"Step must be callable or awaitable, got {type(self.target).__name__}"
        )

    def discard(self):
        """Close a pending coroutine that will never be awaited."""
        if inspect.iscoroutine(self.target):
            self.target.close()

    @property
    def name(self):
        return getattr(self.target, '__name__', None) or repr(self.target)

    def __repr__(self):
        return f"FunctionStep({self.name})"


def flatten(items):
    """
    Expand nested step groups into one ordered tuple of steps.

    Lists and tuples are expanded recursively, depth first, left to right.
    A nested Process contributes its own already flattened steps in place.
    Step instances (switches included) are kept as they are, everything
    else is wrapped in a FunctionStep. Invalid steps are not rejected here;
    they fail when invoked.

    Args:
        items: Iterable of steps, step groups and nested processes

    Returns:
        Tuple of normalized steps
    """
    flat = []
    _flatten_into(flat, items)
    return tuple(flat)


def _flatten_into(flat, items):
    for item in items:
        if isinstance(item, (list, tuple)):
            _flatten_into(flat, item)
        elif _is_process(item):
            flat.extend(item.steps)
        elif isinstance(item, Step):
            flat.append(item)
        else:
            flat.append(FunctionStep(item))


def _is_process(item):
    from .chain import Process
    return isinstance(item, Process)
