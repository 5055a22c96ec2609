"""
Provisioning Orchestrator

Sequences the pre-flight check (or code generation), descriptor building and
creation calls for one provisioning request.

Unmanaged flow:
1. Normalize the application name
2. Check that no derived resource name exists
3. Partition environment entries into plaintext and secret maps
4. Create ConfigMap, Secret, Deployment, Service
5. Monitor requested: create health-check CronJob and start the reaper
6. External access requested: create Ingress and report the external host,
   otherwise report the internal service name

Managed flow: generate an unused code instead of step 1-2, add generated
database credentials to the secret map, and use the managed-instance image
and limits from settings.

The first failing creation call ends the request. Resources created before it
are left in place.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .checker import ensure_names_available
from .client import KubernetesClient, is_already_exists
from .generator import generate_instance_code
from .helpers import (
    partition_environment,
    create_config_map_manifest,
    create_secret_manifest,
    create_deployment_manifest,
    create_service_manifest,
    create_ingress_manifest,
    create_health_check_cronjob_manifest,
)
from .reaper import ReaperRegistry
from ...config import Settings
from ...exceptions import ResourceKind, ResourceConflictError, ProvisioningBackendError
from ...schemas import ProvisionRequest, ManagedProvisionRequest, ResourceLimits
from ...utils.credentials import generate_password, generate_username
from ...utils.resource_naming import (
    ResourceNames,
    get_external_hostname,
    get_managed_host,
    get_managed_label,
    get_resource_names,
    normalize_app_name,
)

logger = logging.getLogger(__name__)

MANAGED_USERNAME_KEY = "POSTGRES_USER"
MANAGED_PASSWORD_KEY = "POSTGRES_PASSWORD"


@dataclass
class ProvisionResult:
    """Outcome of a successful provisioning request."""
    names: ResourceNames
    message: str
    hostname: Optional[str] = None
    code: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class ProvisioningOrchestrator:
    """Creates the ResourceSet of unmanaged applications and managed instances."""

    def __init__(self, k8s_client: KubernetesClient, reapers: ReaperRegistry, settings: Settings):
        self.k8s_client = k8s_client
        self.reapers = reapers
        self.settings = settings

    async def _create(self, kind: ResourceKind, body: Any) -> None:
        name = body.metadata.name
        try:
            await self.k8s_client.create(kind, body)
        except Exception as e:
            if is_already_exists(e):
                # Lost a race against a concurrent request for the same name
                logger.warning(f"[PROVISION] {kind.value} {name} was created concurrently")
                raise ResourceConflictError(kind, name) from e
            logger.error(f"[PROVISION] Failed to create {kind.value} {name}: {e}", exc_info=True)
            raise ProvisioningBackendError(f"Failed to create {kind.value} {name}") from e

    async def _create_core_resources(
        self,
        names: ResourceNames,
        image_address: str,
        image_tag: str,
        replicas: int,
        port: int,
        resources: ResourceLimits,
        config_data: Dict[str, str],
        secret_data: Dict[str, str]
    ) -> None:
        await self._create(
            ResourceKind.CONFIG_MAP,
            create_config_map_manifest(names, config_data)
        )
        await self._create(
            ResourceKind.SECRET,
            create_secret_manifest(names, secret_data)
        )
        await self._create(
            ResourceKind.DEPLOYMENT,
            create_deployment_manifest(
                names, image_address, image_tag, replicas, port, resources, config_data, secret_data
            )
        )
        await self._create(
            ResourceKind.SERVICE,
            create_service_manifest(names, port)
        )

    async def _create_ingress(self, names: ResourceNames, host: str, port: int) -> str:
        hostname = get_external_hostname(host, self.settings.domain_suffix)
        await self._create(
            ResourceKind.INGRESS,
            create_ingress_manifest(names, hostname, port, self.settings.k8s_ingress_class)
        )
        return hostname

    async def _start_monitoring(self, names: ResourceNames, port: int) -> None:
        await self._create(
            ResourceKind.CRON_JOB,
            create_health_check_cronjob_manifest(
                names,
                port,
                schedule=self.settings.health_check_schedule,
                image=self.settings.health_check_image,
                path=self.settings.health_check_path,
                probes=self.settings.health_check_probes_per_run,
                interval_seconds=self.settings.health_check_probe_interval_seconds,
            )
        )
        self.reapers.start(names.label)

    # =========================================================================
    # UNMANAGED APPLICATIONS
    # =========================================================================

    async def deploy_unmanaged(self, request: ProvisionRequest) -> ProvisionResult:
        """
        Provision a caller-described application.

        Raises:
            ResourceConflictError: A derived resource name is already taken
            ProvisioningBackendError: A lookup or creation call failed
        """
        names = get_resource_names(normalize_app_name(request.app_name))
        logger.info(f"[PROVISION] Deploying unmanaged application {names.label}")

        await ensure_names_available(self.k8s_client, names)

        config_data, secret_data = partition_environment(request.envs)

        await self._create_core_resources(
            names,
            request.image_address,
            request.image_tag,
            request.replicas,
            request.service_port,
            request.resources,
            config_data,
            secret_data,
        )

        if request.monitor:
            await self._start_monitoring(names, request.service_port)

        if request.external_access:
            hostname = await self._create_ingress(
                names, request.domain_address.strip().lower(), request.service_port
            )
            logger.info(f"[PROVISION] {names.label} reachable at {hostname}")
            return ProvisionResult(
                names=names,
                hostname=hostname,
                message=f"for external access domain address is {hostname}",
            )

        logger.info(f"[PROVISION] {names.label} reachable internally at {names.service}")
        return ProvisionResult(
            names=names,
            message=f"for internal access service name is: {names.service}",
        )

    # =========================================================================
    # MANAGED INSTANCES
    # =========================================================================

    async def deploy_managed(self, request: ManagedProvisionRequest) -> ProvisionResult:
        """
        Provision an anonymous managed database instance with generated credentials.

        Raises:
            GenerationExhaustedError: No unused instance code was found
            ProvisioningBackendError: A lookup or creation call failed
        """
        settings = self.settings

        code = await generate_instance_code(self.k8s_client, settings.instance_code_max_attempts)
        names = get_resource_names(get_managed_label(code))
        logger.info(f"[PROVISION] Deploying managed instance {names.label}")

        config_data, secret_data = partition_environment(request.envs)

        username = generate_username(settings.managed_username_length)
        password = generate_password(settings.managed_password_length, use_special=False)
        secret_data[MANAGED_USERNAME_KEY] = username
        secret_data[MANAGED_PASSWORD_KEY] = password

        await self._create_core_resources(
            names,
            settings.managed_image,
            settings.managed_image_tag,
            settings.managed_replicas,
            settings.managed_port,
            ResourceLimits(cpu=settings.managed_cpu, ram=settings.managed_ram),
            config_data,
            secret_data,
        )

        if request.external_access:
            hostname = await self._create_ingress(names, get_managed_host(code), settings.managed_port)
            message = f"for external access domain name is {hostname}"
        else:
            hostname = None
            message = f"for internal access service name is: {names.service}"

        logger.info(f"[PROVISION] Managed instance {names.label} created")
        return ProvisionResult(
            names=names,
            hostname=hostname,
            code=code,
            username=username,
            password=password,
            message=message,
        )

    # =========================================================================
    # DEPROVISIONING HOOKS
    # =========================================================================

    async def stop_monitoring(self, app_name: str) -> bool:
        """Stop the health monitor of an application. Returns False if none was running."""
        return await self.reapers.stop(normalize_app_name(app_name))
