"""
Collision-checked managed instance codes.
"""

import logging

from .client import KubernetesClient, is_not_found
from ...exceptions import ResourceKind, GenerationExhaustedError, ProvisioningBackendError
from ...utils.credentials import generate_instance_code_candidate
from ...utils.resource_naming import get_managed_label, get_resource_names

logger = logging.getLogger(__name__)


async def generate_instance_code(k8s_client: KubernetesClient, max_attempts: int = 10) -> str:
    """
    Draw a managed instance code that no existing instance uses.

    A code is taken when the Secret of the corresponding managed instance
    ("postgres-{code}-secret") exists.

    Args:
        k8s_client: Cluster collaborator
        max_attempts: Number of draws before giving up

    Returns:
        Unused 5-digit code

    Raises:
        GenerationExhaustedError: If every draw collided
        ProvisioningBackendError: If a lookup fails for any reason other than not-found
    """
    for attempt in range(1, max_attempts + 1):
        code = generate_instance_code_candidate()
        secret_name = get_resource_names(get_managed_label(code)).secret

        try:
            await k8s_client.get(ResourceKind.SECRET, secret_name)
        except Exception as e:
            if is_not_found(e):
                logger.info(f"[PROVISION] Allocated managed instance code {code} (attempt {attempt})")
                return code
            logger.error(f"[PROVISION] Lookup of {secret_name} failed: {e}", exc_info=True)
            raise ProvisioningBackendError(f"Failed to look up {secret_name}") from e

        logger.debug(f"[PROVISION] Code {code} already in use, drawing again")

    raise GenerationExhaustedError(f"No unused instance code found after {max_attempts} attempts")
