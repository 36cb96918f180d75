"""
Process - Runs a flattened sequence of steps, merging their results into one context.
"""

import asyncio
import inspect
import logging
from collections.abc import Mapping

from .context import Context
from .errors import InvalidStepResultError, ProcessAlreadyStartedError
from .result import Result, exit, is_exit
from .step import FunctionStep, flatten
from .switch import Switch, switch

logger = logging.getLogger(__name__)


def noop(context):
    """Step that does nothing: no result, no exit."""
    return None


async def run_steps(steps, data, pipeline=None):
    """
    Run steps one after the other, merging each result into ``data``.

    Each step gets a read-only snapshot of ``data`` and is fully resolved
    before the next one starts. A mapping result is merged into ``data``
    (later keys overwrite earlier ones), None leaves it unchanged, and an
    exit marker merges its payload and stops the run. Exceptions raised by
    a step are not caught. Pending coroutine steps left unreached by an
    exit or a failure are closed.

    Args:
        steps: Flattened sequence of steps
        data: Mutable dict of run data, updated in place
        pipeline: Coroutine function ``(step, context)`` executing one step,
            as returned by ``build_step_pipeline`` (optional)

    Returns:
        Tuple of ``(data, exited)``
    """
    if pipeline is None:
        pipeline = build_step_pipeline()

    position = -1
    try:
        for position, step in enumerate(steps):
            logger.debug("Running step %s", step.name)
            result = await pipeline(step, Context(data))

            if is_exit(result):
                data.update(result.payload)
                logger.debug("Step %s requested exit", step.name)
                return data, True

            if result is None:
                continue

            if not isinstance(result, Mapping):
                raise InvalidStepResultError(
                    f"Step {step.name} returned {type(result).__name__}, "
                    f"expected a mapping, an exit marker or None"
                )
            data.update(result)
    finally:
        # Steps after an exit or a failure never run
        for unreached in steps[position + 1:]:
            if isinstance(unreached, FunctionStep):
                unreached.discard()

    return data, False


def build_step_pipeline(middleware=()):
    """
    Build the per-step execution pipeline.

    Middleware wraps in reverse registration order, so the first registered
    middleware is the outermost. Switch steps are resolved here: the
    selected branch runs through the same pipeline and its outcome becomes
    the switch's result.

    Returns:
        Coroutine function that executes a step through all middleware
    """
    async def execute_step(step, context):
        """Inner function that actually executes the step."""
        if isinstance(step, Switch):
            branch = step.select(context)
            logger.debug("%s selected %d step(s)", step.name, len(branch))
            data, exited = await run_steps(branch, dict(context), pipeline)
            return exit(data) if exited else data

        result = step(context)
        if inspect.isawaitable(result):
            result = await result
        return result

    pipeline = execute_step

    for middleware_item in reversed(middleware):
        pipeline = _wrap_step_middleware(middleware_item, pipeline)

    return pipeline


def _wrap_step_middleware(middleware, next_pipeline):
    async def wrapper(step, context):
        return await middleware.around_step(
            step,
            context,
            lambda ctx: next_pipeline(step, ctx)
        )
    return wrapper


def _wrap_run_middleware(middleware, next_runner):
    async def wrapper(context):
        return await middleware.around_run(context, next_runner)
    return wrapper


class Process:
    """
    Runs a fixed sequence of steps strictly in declaration order.

    The process manages:
    - Construction-time flattening of step groups and nested processes
    - Sequential execution with result merging
    - Early termination through the exit signal
    - Middleware around the whole run and around each step

    Example:
        process = Process(load_order, [price_order, tax_order], ship_order)
        result = await process.start({'order_id': 42})
    """

    noop = staticmethod(noop)
    switch = staticmethod(switch)
    exit = exit

    def __init__(self, *steps, name=None):
        """
        Initialize a Process.

        Args:
            *steps: Steps, lists or tuples of steps, or nested processes
            name: Optional name used in logs and repr
        """
        self.name = name
        self._steps = flatten(steps)
        self._middleware = []
        self._pipeline = None
        self._pipeline_built = False
        self._started = False

    @property
    def steps(self):
        """Flattened, immutable tuple of the steps of this process."""
        return self._steps

    def use_middleware(self, middleware):
        """
        Add middleware to the process.

        Args:
            middleware: Middleware instance to add

        Returns:
            self (for method chaining)
        """
        self._middleware.append(middleware)
        self._pipeline_built = False  # Invalidate cached pipeline
        return self

    async def start(self, input=None):
        """
        Run every step and return the accumulated context.

        Args:
            input: Mapping seeding the context (default: empty)

        Returns:
            Result holding the merged data; ``result.exited`` is True if a
            step ended the run early

        Raises:
            ProcessAlreadyStartedError: If this process was already started
            TypeError: If ``input`` is not a mapping
        """
        if self._started:
            raise ProcessAlreadyStartedError(
                f"{self!r} was already started; build a new Process for each run"
            )
        if input is None:
            input = {}
        if not isinstance(input, Mapping):
            raise TypeError(f"Process input must be a mapping, got {type(input).__name__}")
        self._started = True

        # Build pipeline once and cache it
        if not self._pipeline_built:
            self._pipeline = build_step_pipeline(self._middleware)
            self._pipeline_built = True

        runner = self._run
        for middleware in reversed(self._middleware):
            runner = _wrap_run_middleware(middleware, runner)

        logger.debug("Starting %r", self)
        result = await runner(Context(input))
        logger.debug("Finished %r (exited=%s)", self, result.exited)
        return result

    async def _run(self, context):
        data, exited = await run_steps(self._steps, dict(context), self._pipeline)
        return Result(data, exited=exited)

    def execute(self, input=None):
        """
        Blocking form of ``start`` for callers without a running event loop.

        Args:
            input: Mapping seeding the context (default: empty)

        Returns:
            Result holding the merged data
        """
        return asyncio.run(self.start(input))

    def step_count(self):
        """Return the number of flattened steps."""
        return len(self._steps)

    def middleware_count(self):
        """Return the number of middleware."""
        return len(self._middleware)

    def __repr__(self):
        label = f"name={self.name!r}, " if self.name else ""
        return (f"Process({label}steps={len(self._steps)}, "
                f"middleware={len(self._middleware)})")


def steps(*items):
    """
    Shortcut building a fresh Process on each call and starting it.

    Example:
        checkout = steps(validate, [price, tax], charge)
        result = await checkout({'cart': cart})

    Args:
        *items: Steps, step groups or nested processes

    Returns:
        Coroutine function ``(input=None) -> Result``
    """
    async def run(input=None):
        return await Process(*items).start(input)
    return run
