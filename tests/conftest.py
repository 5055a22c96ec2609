"""
Test configuration and fixtures for pytest.

This file provides fixtures for testing the provisioning core without a cluster.
Fixtures include: settings, an in-memory Kubernetes collaborator, a reaper
registry, the orchestrator, and sample provisioning requests.
"""

import sys
import os
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional
import pytest

from kubernetes.client.rest import ApiException

# Add the repository root to sys.path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    os.environ["K8S_NAMESPACE"] = "kaas-test"
    os.environ["LOG_LEVEL"] = "DEBUG"

    # Import and clear settings cache after env vars are set
    from kaas.config import get_settings
    get_settings.cache_clear()

    # Register custom markers
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "kubernetes: mark test as exercising Kubernetes manifests or API calls")


class FakeKubernetesClient:
    """
    In-memory stand-in for KubernetesClient.

    Behaves like the API server where it matters:
    - create is atomic and rejects a taken name with 409
    - get raises 404 for absent names
    - list honours "key=value[,key=value]" label selectors

    Every call yields to the event loop first so concurrent requests interleave.
    """

    def __init__(self):
        self.store: Dict[str, Dict[str, Any]] = {}
        self.logs: Dict[str, bytes] = {}
        self.calls: List[tuple] = []
        self.failures: Dict[tuple, Exception] = {}

    def fail(self, operation: str, kind, name: Optional[str] = None, status: int = 500):
        """Make every matching call raise an ApiException with `status`."""
        self.failures[(operation, kind, name)] = ApiException(status=status, reason="Injected failure")

    def _maybe_fail(self, operation: str, kind, name: Optional[str] = None):
        for key in ((operation, kind, name), (operation, kind, None)):
            if key in self.failures:
                raise self.failures[key]

    def put(self, kind, obj) -> None:
        """Seed an object directly, bypassing create."""
        self.store.setdefault(kind, {})[obj.metadata.name] = obj

    def names(self, kind) -> List[str]:
        return sorted(self.store.get(kind, {}))

    def created(self, kind, name: str):
        return self.store[kind][name]

    async def create(self, kind, body):
        await asyncio.sleep(0)
        name = body.metadata.name
        self.calls.append(("create", kind, name))
        self._maybe_fail("create", kind, name)
        bucket = self.store.setdefault(kind, {})
        if name in bucket:
            raise ApiException(status=409, reason="AlreadyExists")
        bucket[name] = body
        return body

    async def get(self, kind, name: str):
        await asyncio.sleep(0)
        self.calls.append(("get", kind, name))
        self._maybe_fail("get", kind, name)
        try:
            return self.store[kind][name]
        except KeyError:
            raise ApiException(status=404, reason="NotFound")

    async def list(self, kind, label_selector: Optional[str] = None):
        await asyncio.sleep(0)
        self.calls.append(("list", kind, label_selector))
        self._maybe_fail("list", kind)
        wanted = {}
        if label_selector:
            for term in label_selector.split(","):
                key, value = term.split("=", 1)
                wanted[key] = value
        items = []
        for obj in self.store.get(kind, {}).values():
            labels = obj.metadata.labels or {}
            if all(labels.get(k) == v for k, v in wanted.items()):
                items.append(obj)
        return items

    async def delete(self, kind, name: str, propagation_policy: str = "Background"):
        await asyncio.sleep(0)
        self.calls.append(("delete", kind, name))
        self._maybe_fail("delete", kind, name)
        try:
            del self.store[kind][name]
        except KeyError:
            raise ApiException(status=404, reason="NotFound")

    async def read_pod_log(self, pod_name: str) -> bytes:
        await asyncio.sleep(0)
        self.calls.append(("log", "pod", pod_name))
        self._maybe_fail("log", "pod", pod_name)
        return self.logs.get(pod_name, b"")


@pytest.fixture
def settings():
    """Settings with a short reaper interval and few code attempts."""
    from kaas.config import Settings
    return Settings(
        k8s_namespace="kaas-test",
        instance_code_max_attempts=5,
        reaper_interval_seconds=0.01,
    )


@pytest.fixture
def fake_k8s():
    return FakeKubernetesClient()


@pytest.fixture
def reapers(fake_k8s, settings):
    from kaas.services.provisioning import ReaperRegistry
    return ReaperRegistry(fake_k8s, settings.reaper_interval_seconds)


@pytest.fixture
def orchestrator(fake_k8s, reapers, settings):
    from kaas.services.provisioning import ProvisioningOrchestrator
    return ProvisioningOrchestrator(fake_k8s, reapers, settings)


@pytest.fixture
def demo_request():
    """The request from the documented "demo" scenario."""
    from kaas.schemas import ProvisionRequest
    return ProvisionRequest.model_validate({
        "AppName": "demo",
        "Replicas": 2,
        "ImageAddress": "nginx",
        "ImageTag": "stable",
        "ServicePort": 80,
        "Resources": {"CPU": "250m", "RAM": "256Mi"},
        "Envs": [{"Key": "MODE", "Value": "prod", "IsSecret": False}],
        "ExternalAccess": False,
    })
