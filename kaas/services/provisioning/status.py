"""
Read-only status of provisioned applications: deployment replicas joined with
the pods that carry the application's label.
"""

import logging
from typing import List

from .client import KubernetesClient, is_not_found
from ...exceptions import ResourceKind, WorkloadNotFoundError, ProvisioningBackendError
from ...schemas import DeploymentStatus, PodStatus
from ...utils.resource_naming import get_resource_names, normalize_app_name

logger = logging.getLogger(__name__)


def to_pod_status(pod) -> PodStatus:
    status = pod.status
    return PodStatus(
        name=pod.metadata.name,
        phase=status.phase if status else None,
        host_ip=status.host_ip if status else None,
        pod_ip=status.pod_ip if status else None,
        start_time=status.start_time if status else None,
    )


def to_deployment_status(deployment, pods) -> DeploymentStatus:
    return DeploymentStatus(
        deployment_name=deployment.metadata.name,
        replicas=(deployment.spec.replicas if deployment.spec else None) or 0,
        ready_replicas=(deployment.status.ready_replicas if deployment.status else None) or 0,
        pod_statuses=[to_pod_status(pod) for pod in pods],
    )


def pod_app_label(pod) -> str:
    labels = pod.metadata.labels or {}
    return labels.get("app", "")


class StatusService:
    """Projects deployment and pod state into caller-facing summaries."""

    def __init__(self, k8s_client: KubernetesClient):
        self.k8s_client = k8s_client

    async def get_status(self, app_name: str) -> DeploymentStatus:
        """
        Get the status of one application.

        Raises:
            WorkloadNotFoundError: If the application's deployment does not exist
            ProvisioningBackendError: On any other cluster failure
        """
        names = get_resource_names(normalize_app_name(app_name))

        try:
            deployment = await self.k8s_client.get(ResourceKind.DEPLOYMENT, names.deployment)
        except Exception as e:
            if is_not_found(e):
                raise WorkloadNotFoundError(names.deployment) from e
            logger.error(f"[STATUS] Failed to read {names.deployment}: {e}", exc_info=True)
            raise ProvisioningBackendError(f"Failed to read {names.deployment}") from e

        try:
            pods = await self.k8s_client.list(ResourceKind.POD)
        except Exception as e:
            logger.error(f"[STATUS] Failed to list pods of {names.label}: {e}", exc_info=True)
            raise ProvisioningBackendError(f"Failed to list pods of {names.label}") from e

        matching = [pod for pod in pods if pod_app_label(pod) == names.label]
        return to_deployment_status(deployment, matching)

    async def get_all_statuses(self) -> List[DeploymentStatus]:
        """Get the status of every deployment in the namespace."""
        try:
            deployments = await self.k8s_client.list(ResourceKind.DEPLOYMENT)
            pods = await self.k8s_client.list(ResourceKind.POD)
        except Exception as e:
            logger.error(f"[STATUS] Failed to list deployments: {e}", exc_info=True)
            raise ProvisioningBackendError("Failed to list deployments") from e

        pods_by_deployment = {}
        for pod in pods:
            label = pod_app_label(pod)
            if label:
                pods_by_deployment.setdefault(f"{label}-deployment", []).append(pod)

        return [
            to_deployment_status(deployment, pods_by_deployment.get(deployment.metadata.name, []))
            for deployment in deployments
        ]
