from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import uuid4

from task_exec.cluster import ClusterApi
from task_exec.command import normalize
from task_exec.errors import (
    CleanupError,
    ClusterApiError,
    ExecutionInterrupted,
    OrchestrationError,
    PollingError,
    SubmissionError,
    UnexpectedError,
)
from task_exec.models import UNKNOWN_PHASE, TaskResult, WorkloadSpec
from task_exec.settings import Settings

logger = logging.getLogger(__name__)

NAME_PREFIX = "task-exec-"
DEFAULT_IMAGE = "busybox:1.36"


def workload_name(task_id: str) -> str:
    """Pod name for one execution of ``task_id``; the suffix only avoids collisions."""
    return f"{NAME_PREFIX}{task_id}-{uuid4().hex[:6]}"


def build_workload_spec(
    name: str, command: list[str], namespace: str, image: str = DEFAULT_IMAGE
) -> WorkloadSpec:
    return WorkloadSpec(
        name=name,
        namespace=namespace,
        image=image,
        command=list(command),
        restart_policy="Never",
    )


class Waiter:
    """Timed wait that returns early once shutdown is requested."""

    def __init__(self) -> None:
        self._stop = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if stopped meanwhile."""
        if self._stop.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


class TaskOrchestrator:
    """Runs one command as a single-shot pod and waits for its phase."""

    def __init__(
        self,
        cluster: ClusterApi,
        *,
        namespace: str = "default",
        image: str = DEFAULT_IMAGE,
        max_attempts: int = 120,
        poll_interval: float = 1.0,
        read_retries: int = 0,
        waiter: Waiter | None = None,
    ) -> None:
        self.cluster = cluster
        self.namespace = namespace
        self.image = image
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.read_retries = read_retries
        self.waiter = waiter or Waiter()

    @classmethod
    def from_settings(cls, cluster: ClusterApi, settings: Settings) -> "TaskOrchestrator":
        return cls(
            cluster,
            namespace=settings.namespace,
            image=settings.image,
            max_attempts=settings.max_attempts,
            poll_interval=settings.poll_interval,
            read_retries=settings.read_retries,
        )

    def shutdown(self) -> None:
        """Interrupt every in-flight wait; their pods are still deleted."""
        self.waiter.stop()

    async def execute(
        self, task_id: str, command: Any, namespace: str | None = None
    ) -> TaskResult:
        spec = build_workload_spec(
            workload_name(task_id),
            normalize(command),
            namespace or self.namespace,
            image=self.image,
        )

        submit = asyncio.ensure_future(self.cluster.create(spec.namespace, spec))
        try:
            await asyncio.shield(submit)
        except asyncio.CancelledError:
            # The create keeps running; remove whatever it ends up creating.
            await asyncio.shield(self._abandon_submission(submit, spec))
            raise
        except ClusterApiError as exc:
            logger.error("failed to create pod %s: %s", spec.name, exc)
            raise SubmissionError(str(exc), workload=spec.name) from exc
        except Exception as exc:
            logger.exception("unexpected error creating pod %s", spec.name)
            raise UnexpectedError(str(exc), workload=spec.name) from exc
        logger.info("created pod %s in namespace %s", spec.name, spec.namespace)

        try:
            phase, attempts = await self._wait_for_phase(spec)
        except OrchestrationError:
            raise
        except Exception as exc:
            logger.exception("unexpected error waiting for pod %s", spec.name)
            raise UnexpectedError(str(exc), workload=spec.name) from exc
        finally:
            # Also runs when the calling task is cancelled.
            cleanup_error = await asyncio.shield(self._cleanup(spec))

        return TaskResult(
            name=spec.name, phase=phase, attempts=attempts, cleanup_error=cleanup_error
        )

    async def _wait_for_phase(self, spec: WorkloadSpec) -> tuple[str, int]:
        failures = 0
        for attempt in range(1, self.max_attempts + 1):
            if await self.waiter.wait(self.poll_interval):
                raise ExecutionInterrupted(
                    "Interrupted while waiting for pod", workload=spec.name
                )
            try:
                status = await self.cluster.read(spec.name, spec.namespace)
            except ClusterApiError as exc:
                failures += 1
                if failures > self.read_retries:
                    logger.error("failed to read pod %s: %s", spec.name, exc)
                    raise PollingError(str(exc), workload=spec.name) from exc
                logger.warning(
                    "read of pod %s failed (%d/%d): %s",
                    spec.name,
                    failures,
                    self.read_retries,
                    exc,
                )
                continue
            failures = 0
            if status.is_terminal:
                logger.info("pod %s finished with phase %s", spec.name, status.phase)
                return status.phase, attempt
            logger.debug("pod %s phase %s", spec.name, status.phase or "<none>")

        logger.warning(
            "pod %s not finished after %d attempts", spec.name, self.max_attempts
        )
        return UNKNOWN_PHASE, self.max_attempts

    async def _abandon_submission(self, submit: asyncio.Future, spec: WorkloadSpec) -> None:
        try:
            await submit
        except Exception as exc:
            logger.info("pod %s was not created before cancellation: %s", spec.name, exc)
            return
        logger.info("deleting pod %s created by a cancelled request", spec.name)
        await self._cleanup(spec)

    async def _cleanup(self, spec: WorkloadSpec) -> str | None:
        try:
            await self.cluster.delete(spec.name, spec.namespace)
        except Exception as exc:
            warning = CleanupError(
                f"failed to delete pod {spec.name}: {exc!r}", workload=spec.name
            )
            logger.warning("%s", warning)
            return str(warning)
        logger.debug("deleted pod %s", spec.name)
        return None
