"""Execution context - per-run state shared by the steps of one invocation."""

import typing
import uuid


__all__ = (
    'EmittedHook',
    'ExecutionContext',
)


S = typing.TypeVar('S')


class EmittedHook(typing.NamedTuple):
    step_name: str
    hook_name: str
    payload: typing.Any
    registry: typing.Any = None


class ExecutionContext(typing.Generic[S]):
    """State of a single workflow invocation.

    Contains:
    - transaction_id generated once per run, propagated into side-effect
      payloads so that records can be traced back to the run that made them
    - services, the typed capability object the caller supplied
    - emitted_hooks, the append-only list of hooks queued for post-commit firing

    A context is never reused across invocations.
    """

    def __init__(self, services: S = None, transaction_id: str | None = None):
        self._transaction_id: str = transaction_id or str(uuid.uuid4())
        self._services: S = services
        self._emitted_hooks: list[EmittedHook] = []

    @property
    def transaction_id(self) -> str:
        return self._transaction_id

    @property
    def services(self) -> S:
        return self._services

    @property
    def emitted_hooks(self) -> tuple[EmittedHook, ...]:
        return tuple(self._emitted_hooks)

    def emit_hook(
            self,
            step_name: str,
            hook_name: str,
            payload: typing.Any,
            registry: typing.Any = None
    ) -> None:
        self._emitted_hooks.append(EmittedHook(step_name, hook_name, payload, registry))

    def __repr__(self):
        return "<%s transaction_id=%s>" % (type(self).__name__, self._transaction_id)
