"""
Provisioning Module

This module contains the Kubernetes provisioning core:
- KubernetesClient: Keyed resource store over the Kubernetes API
- Helpers: Pure manifest builders for the ResourceSet of one application
- Checker: Pre-flight existence check for unmanaged applications
- Generator: Collision-checked managed instance codes
- ProvisioningOrchestrator: Sequences check, build and create calls
- HealthMonitorReaper / ReaperRegistry: Reclaims health-check jobs and records their result
- StatusService: Deployment and pod status projection

Managed instances:
1. Draw a 5-digit code until "postgres-{code}-secret" does not exist
2. Generate database credentials into the Secret
3. Create the same ResourceSet under the base name "postgres-{code}"
"""

from .client import KubernetesClient, is_not_found, is_already_exists
from .helpers import (
    get_standard_labels,
    partition_environment,
    encode_secret_data,
    create_env_vars,
    create_config_map_manifest,
    create_secret_manifest,
    create_deployment_manifest,
    create_service_manifest,
    create_ingress_manifest,
    create_health_check_cronjob_manifest,
    generate_probe_script,
)
from .checker import ensure_names_available
from .generator import generate_instance_code
from .reaper import HealthMonitorReaper, ReaperRegistry, HealthStatus, JobLogRecord, parse_health_status
from .orchestrator import ProvisioningOrchestrator, ProvisionResult
from .status import StatusService

__all__ = [
    # Client
    "KubernetesClient",
    "is_not_found",
    "is_already_exists",
    # Manifest Helpers
    "get_standard_labels",
    "partition_environment",
    "encode_secret_data",
    "create_env_vars",
    "create_config_map_manifest",
    "create_secret_manifest",
    "create_deployment_manifest",
    "create_service_manifest",
    "create_ingress_manifest",
    "create_health_check_cronjob_manifest",
    "generate_probe_script",
    # Checks and generation
    "ensure_names_available",
    "generate_instance_code",
    # Reaper
    "HealthMonitorReaper",
    "ReaperRegistry",
    "HealthStatus",
    "JobLogRecord",
    "parse_health_status",
    # Orchestration
    "ProvisioningOrchestrator",
    "ProvisionResult",
    # Status
    "StatusService",
]
