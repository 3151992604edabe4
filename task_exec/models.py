from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TERMINAL_PHASES = frozenset({"succeeded", "failed"})
UNKNOWN_PHASE = "Unknown"


class TaskExecutionRequest(BaseModel):
    # Either a shell line ("echo hi") or an argument vector (["echo", "hi"]).
    command: Any = None


class TaskExecutionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pod_name: str = Field(alias="podName")
    status: str
    logs: str | None = None


class WorkloadSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str = "default"
    image: str = "busybox:1.36"
    command: list[str] = Field(default_factory=list)
    restart_policy: str = "Never"
    container_name: str = "task"
    labels: dict[str, str] = Field(default_factory=lambda: {"app": "task-exec"})


class WorkloadStatus(BaseModel):
    phase: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return (self.phase or "").lower() in TERMINAL_PHASES


class TaskResult(BaseModel):
    name: str
    phase: str
    logs: str | None = None
    attempts: int = 0
    cleanup_error: str | None = None

    def to_response(self) -> TaskExecutionResult:
        return TaskExecutionResult(pod_name=self.name, status=self.phase, logs=self.logs)
