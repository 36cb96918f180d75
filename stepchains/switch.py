"""
Switch - Run one of several step branches depending on a context value.
"""

from types import MappingProxyType

from .result import exit
from .step import Step, flatten


class Switch(Step):
    """
    Step that selects a branch by the value of one context key.

    The engine resolves a Switch itself: it asks for the selected branch and
    runs those steps in place, against the same data as the rest of the run,
    so results merge into the outer context and an exit inside the branch
    ends the whole run. When the value matches no branch the switch does
    nothing and the run continues with the next step.
    """

    def __init__(self, key, branches):
        """
        Initialize a Switch.

        Args:
            key: Context key whose value selects the branch
            branches: Mapping of expected value to a step or a list of steps
        """
        self.key = key
        self.branches = MappingProxyType({
            value: flatten([entry]) for value, entry in branches.items()
        })

    def select(self, context):
        """
        Return the steps of the branch matching ``context[key]``.

        Matching is exact equality on discrete values. An absent key or an
        unmatched value selects no steps.
        """
        if self.key not in context:
            return ()
        try:
            return self.branches.get(context[self.key], ())
        except TypeError:
            # Unhashable values (lists, tuples holding lists) match no branch
            return ()

    async def execute(self, context):
        """
        Run the selected branch on its own, without middleware.

        Returns the context snapshot merged with the branch's results, or an
        exit marker carrying that merged data if the branch exited.
        """
        from .chain import run_steps

        data, exited = await run_steps(self.select(context), dict(context))
        if exited:
            return exit(data)
        return data

    @property
    def name(self):
        return f"switch({self.key!r})"

    def __repr__(self):
        return f"Switch({self.key!r}, branches={list(self.branches)})"


def switch(key, branches):
    """
    Build a step that runs the branch of ``branches`` matching ``context[key]``.

    Example:
        switch('payment_method', {
            'card': [authorize_card, capture_card],
            'invoice': send_invoice,
        })
    """
    return Switch(key, branches)
