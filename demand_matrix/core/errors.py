"""Exception taxonomy for the matrix transformation pipeline."""

from __future__ import annotations


class DemandMatrixError(Exception):
    """Base class for demand matrix failures."""


class RecurrenceCalculationError(DemandMatrixError, ValueError):
    """Recurrence math could not be performed for a single task."""

    def __init__(self, task_id: str, reason: str) -> None:
        super().__init__(f"Task {task_id}: {reason}")
        self.task_id = task_id
        self.reason = reason


class RevenueLookupError(DemandMatrixError):
    """A revenue collaborator failed for a single data point."""

    def __init__(self, skill_type: str, month: str, cause: BaseException) -> None:
        super().__init__(f"Revenue lookup failed for {skill_type}/{month}: {cause}")
        self.skill_type = skill_type
        self.month = month
        self.cause = cause


class TransformCancelled(DemandMatrixError):
    """Caller signalled cancellation between processing batches."""
