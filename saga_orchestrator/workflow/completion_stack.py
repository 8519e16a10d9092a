"""Completion stack - record of completed steps for compensation."""

import typing

from saga_orchestrator.workflow.errors import InvalidOperationError

if typing.TYPE_CHECKING:
    from saga_orchestrator.workflow.step import IStep


__all__ = (
    'Completion',
    'CompletionStack',
)


class Completion:
    """Record of completed work from a step.

    Stores the step, its output and the input its compensation needs,
    enabling compensation to be performed later if the workflow needs
    to be rolled back.
    """

    def __init__(self, step: 'IStep', output: typing.Any, compensation_input: typing.Any = None):
        self._step = step
        self._output = output
        self._compensation_input = output if compensation_input is None else compensation_input

    @property
    def step(self) -> 'IStep':
        return self._step

    @property
    def output(self) -> typing.Any:
        return self._output

    @property
    def compensation_input(self) -> typing.Any:
        return self._compensation_input

    def __repr__(self):
        return "<%s step=%r>" % (type(self).__name__, self._step.name)


class CompletionStack:
    """Steps that completed and have not been compensated yet, oldest first."""

    def __init__(self):
        self._completions: list[Completion] = []

    @property
    def is_in_progress(self) -> bool:
        """True if some work has been completed (can be compensated)."""
        return len(self._completions) > 0

    def push(self, step: 'IStep', output: typing.Any, compensation_input: typing.Any = None) -> Completion:
        completion = Completion(step, output, compensation_input)
        self._completions.append(completion)
        return completion

    def pop(self) -> Completion:
        """Remove and return the most recently completed step.

        Raises:
            InvalidOperationError: If there is no work to undo.
        """
        if not self.is_in_progress:
            raise InvalidOperationError("No work to undo")
        return self._completions.pop()

    @property
    def step_names(self) -> list[str]:
        return [completion.step.name for completion in self._completions]

    def __len__(self):
        return len(self._completions)

    def __iter__(self) -> typing.Iterator[Completion]:
        return iter(list(self._completions))
