"""Saga workflows with compensation.

A workflow coordinates a short chain of steps that mutate independently
owned domains without a shared database transaction. Each step pairs a
forward action with a compensation; when a later step fails, the steps
that already completed are compensated in reverse order, so callers see
either all durable effects or none.

Key Components:
- IStep / Step: forward action plus compensation (or explicit no_compensation)
- StepResponse: separates a step's output from its compensation input
- ExecutionContext: per-run transaction id, services and emitted hooks
- CompletionStack: completed steps awaiting possible compensation
- RollbackManager: compensates a completion stack in reverse order
- Workflow: composes steps and pure transforms, fires hooks after commit

Example:
    from saga_orchestrator.workflow import Step, Workflow

    create_design = Step(
        'create-design',
        lambda data, ctx: designs.create(data),
        lambda design, ctx: designs.delete(design.id),
    )
    workflow = Workflow('create-design').step(create_design)
    design = await workflow.run({'name': 'Summer'})
"""

from saga_orchestrator.workflow.completion_stack import Completion, CompletionStack
from saga_orchestrator.workflow.composer import INPUT, Workflow, WorkflowData
from saga_orchestrator.workflow.context import EmittedHook, ExecutionContext
from saga_orchestrator.workflow.errors import (
    CompensationFailure,
    DuplicateLinkError,
    InvalidOperationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
    WorkflowError,
)
from saga_orchestrator.workflow.rollback import RollbackManager
from saga_orchestrator.workflow.step import IStep, Step, no_compensation
from saga_orchestrator.workflow.step_response import StepResponse


__all__ = (
    'CompensationFailure',
    'Completion',
    'CompletionStack',
    'DuplicateLinkError',
    'EmittedHook',
    'ExecutionContext',
    'INPUT',
    'IStep',
    'InvalidOperationError',
    'NotFoundError',
    'RollbackManager',
    'StateConflictError',
    'Step',
    'StepResponse',
    'ValidationError',
    'Workflow',
    'WorkflowData',
    'WorkflowError',
    'no_compensation',
)
