"""Workflow composer - assembles steps and transforms into one invocable unit."""

import logging
import typing

from saga_orchestrator.hooks import Hook, HookRegistry
from saga_orchestrator.workflow.completion_stack import CompletionStack
from saga_orchestrator.workflow.context import ExecutionContext
from saga_orchestrator.workflow.errors import attach_diagnostics
from saga_orchestrator.workflow.rollback import RollbackManager
from saga_orchestrator.workflow.step import IStep
from saga_orchestrator.workflow.step_response import StepResponse


__all__ = (
    'INPUT',
    'Workflow',
    'WorkflowData',
)


INPUT = 'input'

TInput = typing.TypeVar('TInput')
TResult = typing.TypeVar('TResult')


class WorkflowData(dict[str, typing.Any]):
    """Values available to selectors during a run.

    Holds the workflow's original input under INPUT and the output
    of every node that has run so far under the node's name.
    """
    pass


Selector = typing.Callable[[WorkflowData], typing.Any]


def _original_input(data: WorkflowData) -> typing.Any:
    return data[INPUT]


class _StepNode:

    def __init__(self, step: IStep, selector: Selector):
        self.step = step
        self.selector = selector

    @property
    def name(self) -> str:
        return self.step.name


class _TransformNode:

    def __init__(self, name: str, function: Selector):
        self.name = name
        self.function = function


class _HookBinding(typing.NamedTuple):
    hook: Hook
    payload: Selector


class Workflow(typing.Generic[TInput, TResult]):
    """An ordered chain of steps with saga semantics.

    Steps run strictly sequentially. When a step raises, every step that
    already completed is compensated in reverse order and the original error
    is re-raised with the rollback diagnostics attached. When all steps
    succeed, the hooks emitted during the run are fired and the result is
    returned.

    Example:
        workflow = (
            Workflow('link-inventory', hooks)
            .step(validate_links)
            .step(create_links, using=lambda data: data["validate-links"])
            .hook(inventory_linked, after='create-links',
                  payload=lambda data: InventoryLinked(...))
        )
        keys = await workflow.run(LinkInventoryInput(...))
    """

    def __init__(
            self,
            name: str,
            hooks: HookRegistry | None = None,
            services: typing.Any = None,
            rollback_manager: RollbackManager | None = None
    ):
        self._name = name
        self._hooks = hooks if hooks is not None else HookRegistry()
        self._services = services
        self._rollback_manager = rollback_manager or RollbackManager()
        self._nodes: list[_StepNode | _TransformNode] = []
        self._hook_bindings: dict[str, list[_HookBinding]] = {}
        self._result: Selector | None = None
        self._logger = logging.getLogger(".".join((type(self).__module__, type(self).__name__)))

    @property
    def name(self) -> str:
        return self._name

    @property
    def hooks(self) -> HookRegistry:
        return self._hooks

    @property
    def step_names(self) -> list[str]:
        return [node.name for node in self._nodes if isinstance(node, _StepNode)]

    def step(self, step: IStep, using: Selector | None = None) -> typing.Self:
        """Append a step; its input defaults to the workflow's original input."""
        self._check_name(step.name)
        self._nodes.append(_StepNode(step, using or _original_input))
        return self

    def transform(self, name: str, function: Selector) -> typing.Self:
        """Append a pure data transform. Transforms are never compensated."""
        self._check_name(name)
        self._nodes.append(_TransformNode(name, function))
        return self

    def hook(self, hook: Hook, after: str, payload: Selector | None = None) -> typing.Self:
        """Emit the hook once the named step completes.

        The payload defaults to the step's output and must be an instance of
        the hook's payload type. Handlers run only after the whole workflow
        has committed.
        """
        if after not in self.step_names:
            raise ValueError("Workflow %r has no step %r to bind hook %r to" % (
                self._name, after, hook.name
            ))
        self._hook_bindings.setdefault(after, []).append(
            _HookBinding(hook, payload or (lambda data: data[after]))
        )
        return self

    def returns(self, selector: Selector) -> typing.Self:
        self._result = selector
        return self

    async def run(self, input_: TInput, services: typing.Any = None) -> TResult:
        ctx = ExecutionContext(services if services is not None else self._services)
        self._logger.info("Workflow %r started in transaction %s", self._name, ctx.transaction_id)
        result = await self._execute(input_, ctx, CompletionStack())
        self._logger.info("Workflow %r committed in transaction %s", self._name, ctx.transaction_id)
        await self._fire_hooks(ctx)
        return result

    def as_step(self, name: str | None = None) -> IStep[TInput, TResult]:
        """Wrap the workflow so that another workflow can run it as one step."""
        return _NestedWorkflowStep(self, name or self._name)

    async def _execute(self, input_: TInput, ctx: ExecutionContext, stack: CompletionStack) -> TResult:
        data = WorkflowData({INPUT: input_})
        try:
            for node in self._nodes:
                if isinstance(node, _StepNode):
                    data[node.name] = await self._run_step(node, data, ctx, stack)
                    self._emit_hooks(node.name, data, ctx)
                else:
                    self._logger.debug("Applying transform %r in transaction %s", node.name, ctx.transaction_id)
                    data[node.name] = node.function(data)
            return self._make_result(data)
        except Exception as e:
            self._logger.error(
                "Workflow %r failed in transaction %s after steps %r, compensating",
                self._name, ctx.transaction_id, stack.step_names, exc_info=e
            )
            failures = await self._rollback_manager.rollback(stack, ctx)
            attach_diagnostics(e, ctx.transaction_id, failures)
            raise

    async def _run_step(
            self,
            node: _StepNode,
            data: WorkflowData,
            ctx: ExecutionContext,
            stack: CompletionStack
    ) -> typing.Any:
        step = node.step
        self._logger.debug("Running step %r in transaction %s", step.name, ctx.transaction_id)
        response = await step.forward(node.selector(data), ctx)
        if not isinstance(response, StepResponse):
            response = StepResponse(response)
        stack.push(step, response.output, response.compensation_input)
        self._logger.debug("Step %r completed in transaction %s", step.name, ctx.transaction_id)
        return response.output

    def _emit_hooks(self, step_name: str, data: WorkflowData, ctx: ExecutionContext) -> None:
        for binding in self._hook_bindings.get(step_name, []):
            payload = binding.hook.check_payload(binding.payload(data))
            ctx.emit_hook(step_name, binding.hook.name, payload, self._hooks)

    async def _fire_hooks(self, ctx: ExecutionContext) -> None:
        for emitted in ctx.emitted_hooks:
            registry = emitted.registry or self._hooks
            await registry.fire(emitted.hook_name, emitted.payload, ctx)

    def _make_result(self, data: WorkflowData) -> TResult:
        if self._result is not None:
            return self._result(data)
        if self._nodes:
            return data[self._nodes[-1].name]
        return data[INPUT]

    def _check_name(self, name: str) -> None:
        if name == INPUT:
            raise ValueError("%r is reserved for the workflow input" % INPUT)
        if any(node.name == name for node in self._nodes):
            raise ValueError("Workflow %r already has a node named %r" % (self._name, name))

    def __repr__(self):
        return "<%s %r>" % (type(self).__name__, self._name)


class _NestedWorkflowStep(IStep):
    """A workflow running inside another one under the parent's context.

    Its completion stack becomes the compensation input, so rolling back the
    parent undoes the nested steps in reverse order. Hooks emitted by the
    nested run are queued on the parent context and fire only when the
    parent commits.
    """

    def __init__(self, workflow: Workflow, name: str):
        self._workflow = workflow
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def forward(self, input_, ctx: ExecutionContext):
        stack = CompletionStack()
        result = await self._workflow._execute(input_, ctx, stack)
        return StepResponse(result, stack)

    async def compensate(self, stack: CompletionStack, ctx: ExecutionContext) -> None:
        failures = await self._workflow._rollback_manager.rollback(stack, ctx)
        if failures:
            raise failures[0].error
