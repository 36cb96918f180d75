"""
Middleware - Hooks that wrap a whole run or each step of a process.
"""

import logging
import time

logger = logging.getLogger(__name__)


class Middleware:
    """
    Base class for middleware that wraps process execution.

    Middleware provides cross-cutting concerns like logging, timing or
    metrics without the process knowing about them. Both hooks pass through
    by default; subclasses override the ones they need. The first registered
    middleware is the outermost wrapper.
    """

    async def around_run(self, context, next_callable):
        """
        Wrap a whole process run.

        Args:
            context: Context holding the process input
            next_callable: Coroutine function running the steps (must be awaited)

        Returns:
            The Result produced by ``next_callable`` (or a modified one)

        Example:
            async def around_run(self, context, next_callable):
                print("Run starting")
                result = await next_callable(context)
                print("Run finished")
                return result
        """
        return await next_callable(context)

    async def around_step(self, step, context, next_callable):
        """
        Wrap the execution of one step.

        Called for every flattened step, including the steps of a selected
        switch branch.

        Args:
            step: The step about to run
            context: Context snapshot handed to the step
            next_callable: Coroutine function running the step (must be awaited)

        Returns:
            The step's resolved value (or a modified one)
        """
        return await next_callable(context)

    def __repr__(self):
        return f"{self.__class__.__name__}()"

    def __str__(self):
        return self.__class__.__name__


class TimingMiddleware(Middleware):
    """
    Record start, end and duration of the run and of each step.

    Tracks:
    - Wall time of every run
    - Time per step (min, max, avg)
    - Number of calls per step
    """

    def __init__(self, verbose=False):
        """
        Initialize the TimingMiddleware.

        Args:
            verbose: Whether to log each duration at INFO level
        """
        self.verbose = verbose
        self.runs = []
        self.timings = {}

    async def around_run(self, context, next_callable):
        started_at = time.time()
        start = time.perf_counter()
        try:
            return await next_callable(context)
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            self.runs.append({
                'started_at': started_at,
                'ended_at': time.time(),
                'duration_ms': elapsed,
            })
            if self.verbose:
                logger.info("Run took %.2fms", elapsed)

    async def around_step(self, step, context, next_callable):
        start = time.perf_counter()
        try:
            return await next_callable(context)
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            self.timings.setdefault(step.name, []).append(elapsed)
            if self.verbose:
                logger.info("Step %s took %.2fms", step.name, elapsed)

    def get_report(self):
        """Generate a per-step timing report."""
        report = []

        for name, times in sorted(self.timings.items()):
            report.append({
                'step': name,
                'avg_ms': sum(times) / len(times),
                'min_ms': min(times),
                'max_ms': max(times),
                'total_ms': sum(times),
                'calls': len(times),
            })

        return report

    def reset(self):
        """Clear all recorded timings."""
        self.runs.clear()
        self.timings.clear()
