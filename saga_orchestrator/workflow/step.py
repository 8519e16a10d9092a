"""Step - the atomic unit of a workflow: a forward action plus its compensation."""

import typing
from abc import ABCMeta, abstractmethod

from saga_orchestrator.utils import maybe_await

if typing.TYPE_CHECKING:
    from saga_orchestrator.workflow.context import ExecutionContext


__all__ = (
    'IStep',
    'Step',
    'no_compensation',
)


TIn = typing.TypeVar('TIn')
TOut = typing.TypeVar('TOut')

Forward = typing.Callable[[TIn, 'ExecutionContext'], TOut | typing.Awaitable[TOut]]
Compensate = typing.Callable[[TOut, 'ExecutionContext'], None | typing.Awaitable[None]]


def no_compensation(output: typing.Any, ctx: 'ExecutionContext') -> None:
    """Explicit opt-out for steps whose forward action has nothing to undo."""
    return None


class IStep(typing.Generic[TIn, TOut], metaclass=ABCMeta):
    """Abstract base class for workflow steps.

    Each step encapsulates two operations:
    - forward(): performs the durable side effect and returns its output
    - compensate(): reverses it, given exactly that output

    compensate() must be idempotent. A step whose forward action mutates
    nothing sets has_compensation to False and leaves compensate() empty.
    """

    has_compensation: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the step, unique within a workflow."""
        ...

    @abstractmethod
    async def forward(self, input_: TIn, ctx: 'ExecutionContext') -> TOut:
        """Execute the step's action.

        Raises:
            WorkflowError or any other exception to abort the run.
        """
        ...

    @abstractmethod
    async def compensate(self, output: TOut, ctx: 'ExecutionContext') -> None:
        """Undo the previously completed forward action.

        Called during the backward path, most recently completed step first.
        """
        ...

    def __repr__(self):
        return "<%s %r>" % (type(self).__name__, self.name)


class Step(IStep[TIn, TOut]):
    """Step assembled from a pair of plain functions or coroutine functions.

    The compensation argument is mandatory: pass no_compensation to state
    that the forward action leaves nothing to undo.
    """

    def __init__(self, name: str, forward: Forward, compensate: Compensate | None):
        if not name:
            raise ValueError("Step name is required")
        if compensate is None:
            raise TypeError(
                "Step %r must declare a compensation or pass no_compensation" % name
            )
        self._name = name
        self._forward = forward
        self._compensate = compensate
        self.has_compensation = compensate is not no_compensation

    @property
    def name(self) -> str:
        return self._name

    async def forward(self, input_: TIn, ctx: 'ExecutionContext') -> TOut:
        return await maybe_await(self._forward(input_, ctx))

    async def compensate(self, output: TOut, ctx: 'ExecutionContext') -> None:
        await maybe_await(self._compensate(output, ctx))
