"""Rollback manager - compensates completed steps in reverse order."""

import logging

from saga_orchestrator.workflow.completion_stack import CompletionStack
from saga_orchestrator.workflow.context import ExecutionContext
from saga_orchestrator.workflow.errors import CompensationFailure


__all__ = (
    'RollbackManager',
)


class RollbackManager:
    """Drains a completion stack from the top, compensating each step.

    The step that completed last is undone first. A compensation that raises
    is logged and recorded, and the remaining steps are still compensated.
    """

    def __init__(self):
        self._logger = logging.getLogger(".".join((type(self).__module__, type(self).__name__)))

    async def rollback(self, stack: CompletionStack, ctx: ExecutionContext) -> list[CompensationFailure]:
        failures: list[CompensationFailure] = []
        while stack.is_in_progress:
            completion = stack.pop()
            step = completion.step
            if not step.has_compensation:
                continue
            self._logger.debug(
                "Compensating step %r in transaction %s", step.name, ctx.transaction_id
            )
            try:
                await step.compensate(completion.compensation_input, ctx)
            except Exception as e:
                self._logger.error(
                    "Compensation of step %r failed in transaction %s",
                    step.name, ctx.transaction_id, exc_info=e
                )
                failures.append(CompensationFailure(step.name, e))
        return failures
