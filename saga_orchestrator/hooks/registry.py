import logging
import typing

from saga_orchestrator.disposable import Disposable, IDisposable
from saga_orchestrator.hooks.hook import Hook
from saga_orchestrator.utils import maybe_await

if typing.TYPE_CHECKING:
    from saga_orchestrator.workflow.context import ExecutionContext


__all__ = (
    'HookFailure',
    'HookHandler',
    'HookRegistry',
)


P = typing.TypeVar('P')

HookHandler = typing.Callable[[P, 'ExecutionContext'], None | typing.Awaitable[None]]


class HookFailure(typing.NamedTuple):
    hook_name: str
    handler: HookHandler
    error: Exception


class HookRegistry:
    """Handlers of named hooks, kept in registration order.

    Handlers are registered at module load time and invoked only after a
    workflow has committed. A raising handler is isolated: it is logged as
    a post-commit failure and the remaining handlers still run.
    """

    def __init__(self):
        self._handlers: dict[str, list[HookHandler]] = {}
        self._logger = logging.getLogger(".".join((type(self).__module__, type(self).__name__)))

    def on(self, hook: Hook[P], handler: HookHandler) -> IDisposable:
        self._handlers.setdefault(hook.name, []).append(handler)

        async def unregister():
            self.off(hook, handler)

        return Disposable(unregister)

    def off(self, hook: Hook[P], handler: HookHandler) -> None:
        handlers = self._handlers.get(hook.name, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers(self, hook_name: str) -> list[HookHandler]:
        return list(self._handlers.get(hook_name, []))

    async def fire(self, hook_name: str, payload: typing.Any, ctx: 'ExecutionContext') -> list[HookFailure]:
        failures: list[HookFailure] = []
        for handler in self.handlers(hook_name):
            try:
                await maybe_await(handler(payload, ctx))
            except Exception as e:
                self._logger.warning(
                    "Post-commit handler %r of hook %r failed in transaction %s",
                    handler, hook_name, ctx.transaction_id, exc_info=e
                )
                failures.append(HookFailure(hook_name, handler, e))
        return failures
