from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.exceptions import ApiException

from task_exec.errors import ClusterApiError
from task_exec.models import WorkloadSpec, WorkloadStatus

logger = logging.getLogger(__name__)


class ClusterApi(Protocol):
    """Workload operations the orchestrator needs from the cluster."""

    async def create(self, namespace: str, spec: WorkloadSpec) -> None: ...

    async def read(self, name: str, namespace: str) -> WorkloadStatus: ...

    async def delete(self, name: str, namespace: str) -> None: ...


def pod_manifest(spec: WorkloadSpec) -> k8s_client.V1Pod:
    container = k8s_client.V1Container(
        name=spec.container_name,
        image=spec.image,
        # An empty vector keeps the image's own entrypoint.
        command=list(spec.command) or None,
    )
    return k8s_client.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=k8s_client.V1ObjectMeta(name=spec.name, labels=dict(spec.labels)),
        spec=k8s_client.V1PodSpec(
            containers=[container], restart_policy=spec.restart_policy
        ),
    )


class KubernetesCluster:
    """ClusterApi backed by the blocking kubernetes client, run in threads.

    A single ``ApiClient`` (and its urllib3 pool) is shared by all calls.
    """

    def __init__(self, api: k8s_client.CoreV1Api) -> None:
        self.api = api

    @classmethod
    def from_environment(cls) -> "KubernetesCluster":
        configuration = k8s_client.Configuration()
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
            logger.info("loaded in-cluster kubernetes configuration")
        except k8s_config.ConfigException:
            k8s_config.load_kube_config(client_configuration=configuration)
            logger.info("loaded kubeconfig")
        return cls(k8s_client.CoreV1Api(k8s_client.ApiClient(configuration)))

    async def create(self, namespace: str, spec: WorkloadSpec) -> None:
        body = pod_manifest(spec)
        await self._call(self.api.create_namespaced_pod, namespace=namespace, body=body)

    async def read(self, name: str, namespace: str) -> WorkloadStatus:
        pod = await self._call(
            self.api.read_namespaced_pod, name=name, namespace=namespace
        )
        status = pod.status
        if status is None:
            return WorkloadStatus()
        return WorkloadStatus(phase=status.phase, detail=status.to_dict())

    async def delete(self, name: str, namespace: str) -> None:
        await self._call(self.api.delete_namespaced_pod, name=name, namespace=namespace)

    def close(self) -> None:
        self.api.api_client.close()

    @staticmethod
    async def _call(func, **kwargs):
        try:
            return await asyncio.to_thread(func, **kwargs)
        except ApiException as exc:
            raise ClusterApiError(body=exc.body or exc.reason, status=exc.status) from exc
