"""
Errors raised by the step chain engine itself.

Failures raised by steps are never wrapped: they propagate out of
``Process.start`` exactly as the step raised them.
"""


class StepChainError(Exception):
    """Base class for usage errors detected by stepchains."""


class InvalidExitPayloadError(StepChainError, TypeError):
    """``exit`` was called with something other than a mapping."""


class InvalidStepError(StepChainError, TypeError):
    """A step is neither callable nor awaitable."""


class InvalidStepResultError(StepChainError, TypeError):
    """A step resolved to something other than a mapping, an exit marker or None."""


class ProcessAlreadyStartedError(StepChainError, RuntimeError):
    """A Process instance was started a second time."""
