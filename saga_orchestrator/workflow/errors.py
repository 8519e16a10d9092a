"""Error taxonomy of the orchestrator."""

import typing


__all__ = (
    'CompensationFailure',
    'DuplicateLinkError',
    'InvalidOperationError',
    'NotFoundError',
    'StateConflictError',
    'ValidationError',
    'WorkflowError',
    'attach_diagnostics',
)


class CompensationFailure(typing.NamedTuple):
    """A compensation that raised while a failed run was being rolled back."""

    step_name: str
    error: BaseException


class WorkflowError(Exception):
    """Base class for failures the domain steps raise on purpose.

    Carries the diagnostics the composer attaches after rollback:
    the transaction id of the failed run and the list of compensations
    that raised themselves.
    """

    transaction_id: str | None
    compensation_failures: list[CompensationFailure]

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.transaction_id = None
        self.compensation_failures = []


class ValidationError(WorkflowError):
    """Input fails a precondition."""
    pass


class NotFoundError(WorkflowError):
    """A referenced entity does not exist in its owning domain."""

    def __init__(self, message: str, entity_id: typing.Any = None):
        super().__init__(message)
        self.entity_id = entity_id


class StateConflictError(WorkflowError):
    """The operation is not allowed in the entity's current lifecycle state."""

    def __init__(self, message: str, state: typing.Any = None):
        super().__init__(message)
        self.state = state


class DuplicateLinkError(StateConflictError):
    """A link record already exists for the (left_id, right_id) pair."""

    def __init__(self, key: typing.Any):
        super().__init__("Link %r already exists" % (key,))
        self.key = key


class InvalidOperationError(Exception):
    """Raised when an operation is invalid for the current state."""
    pass


def attach_diagnostics(
        error: BaseException,
        transaction_id: str,
        failures: typing.Iterable[CompensationFailure]
) -> BaseException:
    """Attach rollback diagnostics to an arbitrary exception.

    Domain errors already declare the attributes; foreign exceptions
    (I/O errors, bugs) get them set on the instance.
    """
    failures = list(failures)
    existing = getattr(error, 'compensation_failures', None) or []
    error.transaction_id = getattr(error, 'transaction_id', None) or transaction_id
    error.compensation_failures = list(existing) + failures
    for failure in failures:
        error.add_note("Compensation of step %r failed in transaction %s: %r" % (
            failure.step_name, transaction_id, failure.error
        ))
    return error
