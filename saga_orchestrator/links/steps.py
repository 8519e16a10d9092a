"""Reusable steps around the link manager.

Every workflow that writes links runs ValidateLinksStep before CreateLinksStep,
and every workflow that removes links from a stateful entity runs a
StateGateStep before DismissLinksStep.
"""

import dataclasses
import typing

from saga_orchestrator.links.link import LinkKey, LinkRecord, LinkSpec
from saga_orchestrator.links.manager import KeyLike, LinkManager
from saga_orchestrator.utils import maybe_await
from saga_orchestrator.workflow.context import ExecutionContext
from saga_orchestrator.workflow.errors import StateConflictError
from saga_orchestrator.workflow.step import IStep
from saga_orchestrator.workflow.step_response import StepResponse


__all__ = (
    'CreateLinksStep',
    'DismissLinksStep',
    'LinkUpdate',
    'StateGateStep',
    'UpdateLinkStep',
    'ValidateLinksStep',
)


T = typing.TypeVar('T')


class _NamedStep(IStep):

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name


class ValidateLinksStep(_NamedStep):
    """Fails with NotFoundError before any link is written if an entity is missing."""

    has_compensation = False

    def __init__(self, manager: LinkManager, name: str = 'validate-links'):
        super().__init__(name)
        self._manager = manager

    async def forward(self, specs: typing.Sequence[LinkSpec], ctx: ExecutionContext) -> list[LinkSpec]:
        return await self._manager.validate(specs)

    async def compensate(self, output, ctx: ExecutionContext) -> None:
        pass


class CreateLinksStep(_NamedStep):
    """Creates links; the compensation dismisses exactly the keys created."""

    def __init__(self, manager: LinkManager, name: str = 'create-links'):
        super().__init__(name)
        self._manager = manager

    async def forward(self, specs: typing.Sequence[LinkSpec], ctx: ExecutionContext) -> list[LinkKey]:
        return await self._manager.create(specs, ctx.transaction_id)

    async def compensate(self, keys: list[LinkKey], ctx: ExecutionContext) -> None:
        await self._manager.dismiss(keys)


class DismissLinksStep(_NamedStep):
    """Dismisses links; the compensation re-creates the removed records verbatim."""

    def __init__(self, manager: LinkManager, name: str = 'dismiss-links'):
        super().__init__(name)
        self._manager = manager

    async def forward(self, links: typing.Iterable[KeyLike], ctx: ExecutionContext) -> list[LinkRecord]:
        return await self._manager.dismiss(links)

    async def compensate(self, removed: list[LinkRecord], ctx: ExecutionContext) -> None:
        await self._manager.restore(removed)


@dataclasses.dataclass(frozen=True)
class LinkUpdate:
    link: KeyLike
    changes: typing.Mapping[str, typing.Any]


class UpdateLinkStep(_NamedStep):
    """Replaces a link's attributes.

    Outputs the new record; the compensation receives the complete prior
    record, not the delta, and restores it.
    """

    def __init__(self, manager: LinkManager, name: str = 'update-link'):
        super().__init__(name)
        self._manager = manager

    async def forward(self, update: LinkUpdate, ctx: ExecutionContext) -> StepResponse:
        prior, current = await self._manager.update(update.link, update.changes, ctx.transaction_id)
        return StepResponse(current, prior)

    async def compensate(self, prior: LinkRecord, ctx: ExecutionContext) -> None:
        await self._manager.restore([prior])


class StateGateStep(_NamedStep, typing.Generic[T]):
    """Lets the workflow proceed only if the entity's state is in the allow-list.

    Mutates nothing, so it has nothing to compensate. Its input passes through
    unchanged so that the next step can consume it.
    """

    has_compensation = False

    def __init__(
            self,
            read_state: typing.Callable[[T], typing.Any],
            allowed_states: typing.Collection[typing.Any],
            name: str = 'check-state'
    ):
        super().__init__(name)
        self._read_state = read_state
        self._allowed_states = frozenset(allowed_states)

    async def forward(self, input_: T, ctx: ExecutionContext) -> T:
        state = await maybe_await(self._read_state(input_))
        if state not in self._allowed_states:
            raise StateConflictError(
                "Operation is not allowed in state %r" % (state,), state
            )
        return input_

    async def compensate(self, output, ctx: ExecutionContext) -> None:
        pass
