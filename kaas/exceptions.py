"""
Provisioning error taxonomy.

Every failure the provisioning core reports to a caller is one of these.
The HTTP layer maps them onto status codes; the underlying cause of a
backend failure is logged, never returned to the caller.
"""

from enum import Enum


class ResourceKind(str, Enum):
    """Kinds of cluster resources the provisioning core touches."""
    SECRET = "secret"
    CONFIG_MAP = "configmap"
    DEPLOYMENT = "deployment"
    SERVICE = "service"
    INGRESS = "ingress"
    CRON_JOB = "cronjob"
    JOB = "job"
    POD = "pod"


CONFLICT_REASONS = {
    ResourceKind.SECRET: "Secret already exists",
    ResourceKind.CONFIG_MAP: "ConfigMap already exists",
    ResourceKind.DEPLOYMENT: "Deployment already exists",
    ResourceKind.SERVICE: "Service already exists",
    ResourceKind.INGRESS: "Ingress already exists",
    ResourceKind.CRON_JOB: "CronJob already exists",
}


class ProvisioningError(Exception):
    """Base exception for provisioning errors."""
    pass


class ResourceConflictError(ProvisioningError):
    """Raised when a resource with the derived name already exists."""

    def __init__(self, kind: ResourceKind, name: str):
        self.kind = kind
        self.name = name
        self.reason = CONFLICT_REASONS.get(kind, f"{kind.value} already exists")
        super().__init__(f"{self.reason}: {name}")


class WorkloadNotFoundError(ProvisioningError):
    """Raised when a queried deployment does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Deployment not found: {name}")


class GenerationExhaustedError(ProvisioningError):
    """Raised when no unused managed-instance code was found within the attempt bound."""
    pass


class InvalidConfigurationError(ProvisioningError):
    """Raised when a generator is asked for something it cannot produce."""
    pass


class ProvisioningBackendError(ProvisioningError):
    """Raised when the cluster API fails for any reason other than a conflict."""
    pass
