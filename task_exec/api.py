from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request

from task_exec.cluster import KubernetesCluster
from task_exec.errors import (
    ClientError,
    ExecutionInterrupted,
    PollingError,
    SubmissionError,
)
from task_exec.models import TaskExecutionRequest, TaskExecutionResult
from task_exec.runner import TaskOrchestrator
from task_exec.settings import get_settings

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Task Execution Bridge - run a shell command as a one-shot Kubernetes pod.

## Running a Task

`PUT /tasks/{id}` with either a shell line or an argument vector:

```json
{"command": "echo hi"}
{"command": ["echo", "hi"]}
```

A shell line runs as `sh -c "<line>"`. The pod uses `restartPolicy: Never`,
is polled until it reaches `Succeeded` or `Failed` (about two minutes at most),
and is deleted before the response is sent. If the pod never finishes in time
the reported status is `Unknown`.

Logs are not collected; `logs` is always `null`.

## Environment Variables

- `K8S_NAMESPACE` - Namespace pods are created in (default `default`)
- `TASK_IMAGE` - Container image the command runs in (default `busybox:1.36`)
- `TASK_MAX_ATTEMPTS` - Number of status reads before giving up (default `120`)
- `TASK_POLL_INTERVAL` - Seconds to wait before each status read (default `1.0`)
- `TASK_READ_RETRIES` - Consecutive failed status reads tolerated (default `0`)
- `LOG_LEVEL` - Service log level (default `INFO`)
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    cluster = KubernetesCluster.from_environment()
    orchestrator = TaskOrchestrator.from_settings(cluster, get_settings())
    app.state.orchestrator = orchestrator
    try:
        yield
    finally:
        orchestrator.shutdown()
        cluster.close()


app = FastAPI(
    title="Task Execution Bridge",
    version="0.1.0",
    description=API_DESCRIPTION,
    lifespan=lifespan,
)


def get_orchestrator(request: Request) -> TaskOrchestrator:
    return request.app.state.orchestrator


def _require_command(req: TaskExecutionRequest | None):
    if req is None or req.command is None:
        raise ClientError("Missing 'command' in request body")
    return req.command


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.put("/tasks/{task_id}", response_model=TaskExecutionResult)
async def run_task(
    task_id: str,
    req: TaskExecutionRequest | None = None,
    orchestrator: TaskOrchestrator = Depends(get_orchestrator),
) -> TaskExecutionResult:
    try:
        command = _require_command(req)
    except ClientError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        result = await orchestrator.execute(task_id, command)
    except (SubmissionError, PollingError) as exc:
        raise HTTPException(
            status_code=500, detail=f"Kubernetes API error: {exc}"
        ) from exc
    except ExecutionInterrupted as exc:
        raise HTTPException(
            status_code=500, detail="Interrupted while waiting for pod"
        ) from exc
    except Exception as exc:
        logger.exception("task %s failed", task_id)
        raise HTTPException(status_code=500, detail=f"Unexpected error: {exc}") from exc

    if result.cleanup_error:
        logger.warning("task %s: %s", task_id, result.cleanup_error)
    return result.to_response()
