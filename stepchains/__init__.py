"""
StepChains - Sequential composition of synchronous and asynchronous steps

StepChains runs a fixed list of steps strictly one after the other:
- Steps are plain functions, coroutine functions, awaitables or Step subclasses
- Each step receives the accumulated context and returns a mapping of updates
- Lists of steps and nested processes are flattened into one sequence
- switch() runs one branch of steps depending on a context value
- exit ends the whole run early, optionally with extra fields
- Middleware observes the run and each step without the engine knowing about it

Example:
    from stepchains import Process, exit, switch

    def load(context):
        return {'total': context['price'] * context['quantity']}

    async def check(context):
        if context['total'] == 0:
            return exit({'reason': 'empty order'})

    process = Process(load, check, switch('country', {'FR': add_vat}))
    result = process.execute({'price': 5, 'quantity': 2, 'country': 'FR'})
    print(result['total'])  # 10
"""

__version__ = "1.0.0"
__author__ = "StepChains Contributors"

from .chain import Process, build_step_pipeline, noop, run_steps, steps
from .context import Context
from .errors import (
    InvalidExitPayloadError,
    InvalidStepError,
    InvalidStepResultError,
    ProcessAlreadyStartedError,
    StepChainError,
)
from .middleware import Middleware, TimingMiddleware
from .result import ExitMarker, Result, exit, is_exit
from .step import FunctionStep, Step, flatten
from .switch import Switch, switch

__all__ = [
    'Process',
    'steps',
    'noop',
    'run_steps',
    'build_step_pipeline',
    'Context',
    'Step',
    'FunctionStep',
    'flatten',
    'Switch',
    'switch',
    'ExitMarker',
    'exit',
    'is_exit',
    'Result',
    'Middleware',
    'TimingMiddleware',
    'StepChainError',
    'InvalidExitPayloadError',
    'InvalidStepError',
    'InvalidStepResultError',
    'ProcessAlreadyStartedError',
]
