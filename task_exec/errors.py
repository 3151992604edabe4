from __future__ import annotations


class TaskExecError(Exception):
    """Base class for task execution errors."""


class ClientError(TaskExecError):
    """The request itself is unusable; nothing was sent to the cluster."""


class ClusterApiError(TaskExecError):
    """A call to the cluster API failed."""

    def __init__(self, body: str | None = None, status: int | None = None) -> None:
        self.body = body
        self.status = status
        super().__init__(body or f"cluster API error (status={status})")


class OrchestrationError(TaskExecError):
    kind = "unexpected"

    def __init__(self, message: str, workload: str | None = None) -> None:
        self.workload = workload
        super().__init__(message)


class SubmissionError(OrchestrationError):
    kind = "submission"


class PollingError(OrchestrationError):
    kind = "polling"


class CleanupError(OrchestrationError):
    # Recorded on TaskResult.cleanup_error, never raised to callers.
    kind = "cleanup"


class ExecutionInterrupted(OrchestrationError):
    kind = "interrupted"


class UnexpectedError(OrchestrationError):
    kind = "unexpected"
