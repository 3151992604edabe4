import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from task_exec.models import WorkloadStatus  # noqa: E402


class FakeCluster:
    """In-memory ClusterApi.

    ``script`` is consumed one item per read: a phase string (or None) is
    reported as the pod phase, an exception instance is raised. The last item
    repeats once the script runs out.
    """

    def __init__(self, script=(), create_error=None, delete_error=None):
        self.script = list(script)
        self.create_error = create_error
        self.delete_error = delete_error
        self.created = []
        self.reads = []
        self.deleted = []

    async def create(self, namespace, spec):
        if self.create_error is not None:
            raise self.create_error
        self.created.append((namespace, spec))

    async def read(self, name, namespace):
        index = min(len(self.reads), len(self.script) - 1)
        self.reads.append((name, namespace))
        item = self.script[index] if self.script else None
        if isinstance(item, Exception):
            raise item
        return WorkloadStatus(phase=item)

    async def delete(self, name, namespace):
        self.deleted.append((name, namespace))
        if self.delete_error is not None:
            raise self.delete_error


@pytest.fixture
def fake_cluster():
    return FakeCluster(script=["Pending", "Running", "Succeeded"])
