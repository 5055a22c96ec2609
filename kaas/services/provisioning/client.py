"""
Kubernetes Client for Provisioning

This module provides the single boundary between the provisioning core and the
Kubernetes API. It exposes the cluster as a keyed resource store per
ResourceKind supporting exactly:

- create-by-descriptor
- get-by-name (ApiException with status 404 signals not-found)
- list-with-label-filter
- delete-by-name
- pod-log retrieval

Every call runs the blocking kubernetes-python request in a worker thread and
carries an explicit request deadline.
"""

from kubernetes import client, config
from kubernetes.client.rest import ApiException
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from ...config import Settings
from ...exceptions import ResourceKind

logger = logging.getLogger(__name__)


class KubernetesClient:
    """
    Namespaced access to the resource kinds used by provisioning.

    One instance is constructed at startup and handed to every component that
    needs cluster access.
    """

    def __init__(self, settings: Settings, api_client: Optional[client.ApiClient] = None):
        """
        Initialize Kubernetes client with in-cluster or kubeconfig.

        Args:
            settings: Application settings (namespace, request timeout)
            api_client: Pre-built ApiClient; skips config loading when given
        """
        self.settings = settings
        self.namespace = settings.k8s_namespace
        self.request_timeout = settings.k8s_request_timeout_seconds

        if api_client is None:
            try:
                # Try in-cluster config first (for production)
                config.load_incluster_config()
                logger.info("Loaded in-cluster Kubernetes configuration")
            except config.ConfigException:
                try:
                    # Fall back to kubeconfig (for development)
                    config.load_kube_config()
                    logger.info("Loaded kubeconfig for development")
                except config.ConfigException as e:
                    logger.error(f"Failed to load Kubernetes config: {e}")
                    raise RuntimeError("Cannot load Kubernetes configuration") from e

        # Initialize API clients
        self.core_v1 = client.CoreV1Api(api_client)
        self.apps_v1 = client.AppsV1Api(api_client)
        self.networking_v1 = client.NetworkingV1Api(api_client)
        self.batch_v1 = client.BatchV1Api(api_client)

        logger.info(f"Kubernetes client initialized - Namespace: {self.namespace}")

    def _resolve(self, kind: ResourceKind) -> Tuple[Any, str]:
        """Map a resource kind onto its API object and method-name suffix."""
        table = {
            ResourceKind.SECRET: (self.core_v1, "secret"),
            ResourceKind.CONFIG_MAP: (self.core_v1, "config_map"),
            ResourceKind.DEPLOYMENT: (self.apps_v1, "deployment"),
            ResourceKind.SERVICE: (self.core_v1, "service"),
            ResourceKind.INGRESS: (self.networking_v1, "ingress"),
            ResourceKind.CRON_JOB: (self.batch_v1, "cron_job"),
            ResourceKind.JOB: (self.batch_v1, "job"),
            ResourceKind.POD: (self.core_v1, "pod"),
        }
        return table[kind]

    async def _call(self, func, **kwargs):
        return await asyncio.to_thread(
            func,
            namespace=self.namespace,
            _request_timeout=self.request_timeout,
            **kwargs
        )

    # =========================================================================
    # RESOURCE STORE
    # =========================================================================

    async def create(self, kind: ResourceKind, body: Any) -> Any:
        """Create a resource. Raises ApiException (409 if the name is taken)."""
        api, suffix = self._resolve(kind)
        result = await self._call(getattr(api, f"create_namespaced_{suffix}"), body=body)
        logger.info(f"[K8S] Created {kind.value}: {body.metadata.name}")
        return result

    async def get(self, kind: ResourceKind, name: str) -> Any:
        """Read a resource by name. Raises ApiException with status 404 if absent."""
        api, suffix = self._resolve(kind)
        return await self._call(getattr(api, f"read_namespaced_{suffix}"), name=name)

    async def list(self, kind: ResourceKind, label_selector: Optional[str] = None) -> List[Any]:
        """List resources in the namespace, optionally filtered by label selector."""
        api, suffix = self._resolve(kind)
        kwargs: Dict[str, Any] = {}
        if label_selector:
            kwargs["label_selector"] = label_selector
        result = await self._call(getattr(api, f"list_namespaced_{suffix}"), **kwargs)
        return list(result.items)

    async def delete(
        self,
        kind: ResourceKind,
        name: str,
        propagation_policy: str = "Background"
    ) -> None:
        """Delete a resource by name."""
        api, suffix = self._resolve(kind)
        await self._call(
            getattr(api, f"delete_namespaced_{suffix}"),
            name=name,
            body=client.V1DeleteOptions(propagation_policy=propagation_policy)
        )
        logger.info(f"[K8S] Deleted {kind.value}: {name}")

    async def read_pod_log(self, pod_name: str) -> bytes:
        """
        Read a pod's complete log.

        The log is fetched as a raw stream and read to completion.
        """
        def _read() -> bytes:
            response = self.core_v1.read_namespaced_pod_log(
                name=pod_name,
                namespace=self.namespace,
                _preload_content=False,
                _request_timeout=self.request_timeout
            )
            try:
                return response.read()
            finally:
                response.release_conn()

        return await asyncio.to_thread(_read)


def is_not_found(error: Exception) -> bool:
    """Check whether a collaborator error means the resource does not exist."""
    return isinstance(error, ApiException) and error.status == 404


def is_already_exists(error: Exception) -> bool:
    """Check whether a collaborator error means the resource name is taken."""
    return isinstance(error, ApiException) and error.status == 409
