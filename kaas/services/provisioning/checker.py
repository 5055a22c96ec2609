"""
Pre-flight existence check for unmanaged applications.

Before anything is created, every derived resource name is looked up in a
fixed order. The first name that already exists is reported as a conflict.

The check is not atomic with the creation calls that follow it; two requests
for the same name can both pass. The orchestrator treats an AlreadyExists
rejection on create as the same conflict.
"""

import logging

from .client import KubernetesClient, is_not_found
from ...exceptions import ResourceKind, ResourceConflictError, ProvisioningBackendError
from ...utils.resource_naming import ResourceNames

logger = logging.getLogger(__name__)


def checked_resources(names: ResourceNames) -> list[tuple[ResourceKind, str]]:
    """Resources to check, in check order."""
    return [
        (ResourceKind.SECRET, names.secret),
        (ResourceKind.CONFIG_MAP, names.config_map),
        (ResourceKind.DEPLOYMENT, names.deployment),
        (ResourceKind.SERVICE, names.service),
        (ResourceKind.INGRESS, names.ingress),
    ]


async def ensure_names_available(k8s_client: KubernetesClient, names: ResourceNames) -> None:
    """
    Verify that none of an application's resources exist yet.

    Args:
        k8s_client: Cluster collaborator
        names: Derived resource names

    Raises:
        ResourceConflictError: For the first resource kind found, in check order
        ProvisioningBackendError: If a lookup fails for any reason other than not-found
    """
    for kind, name in checked_resources(names):
        try:
            await k8s_client.get(kind, name)
        except Exception as e:
            if is_not_found(e):
                continue
            logger.error(f"[PROVISION] Existence check for {kind.value} {name} failed: {e}", exc_info=True)
            raise ProvisioningBackendError(f"Failed to look up {kind.value} {name}") from e

        logger.info(f"[PROVISION] {kind.value} {name} already exists")
        raise ResourceConflictError(kind, name)

    logger.debug(f"[PROVISION] All resource names for {names.label} are available")
