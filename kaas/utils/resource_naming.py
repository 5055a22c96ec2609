"""
Resource naming utilities for provisioned applications.

Centralized functions for generating consistent identifiers across:
- Kubernetes resource names (ConfigMap, Secret, Deployment, Service, Ingress, CronJob)
- Pod selector labels
- Ingress hostnames

Every resource of one application shares a base name (the "label"):
- Unmanaged apps: the lower-cased application name, e.g. "demo"
- Managed instances: "postgres-{code}", e.g. "postgres-48213"
"""

from dataclasses import dataclass

MANAGED_PREFIX = "postgres"

# Label key carried by health-check jobs so the reaper can find its own jobs
HEALTH_CHECK_LABEL = "kaas.io/health-check"


@dataclass(frozen=True)
class ResourceNames:
    """Canonical names of every resource belonging to one application."""
    label: str
    config_map: str
    secret: str
    deployment: str
    service: str
    ingress: str
    cronjob: str


def normalize_app_name(app_name: str) -> str:
    """
    Normalize an application name for use as a naming key.

    Examples:
        >>> normalize_app_name("Demo")
        "demo"
    """
    return app_name.strip().lower()


def get_managed_label(code: str) -> str:
    """
    Get the base name of a managed instance.

    Example:
        >>> get_managed_label("48213")
        "postgres-48213"
    """
    return f"{MANAGED_PREFIX}-{code}"


def get_resource_names(label: str) -> ResourceNames:
    """
    Derive all resource names from a base name.

    Args:
        label: Base name (already normalized, or a managed label)

    Returns:
        ResourceNames with "{label}-config", "{label}-secret", ...

    Example:
        >>> get_resource_names("demo").deployment
        "demo-deployment"
    """
    return ResourceNames(
        label=label,
        config_map=f"{label}-config",
        secret=f"{label}-secret",
        deployment=f"{label}-deployment",
        service=f"{label}-service",
        ingress=f"{label}-ingress",
        cronjob=f"{label}-cronjob",
    )


def get_managed_host(code: str) -> str:
    """
    Get the ingress host prefix of a managed instance.

    The "postgres." prefix goes on the host, not on the resource names.

    Example:
        >>> get_managed_host("48213")
        "postgres.48213"
    """
    return f"{MANAGED_PREFIX}.{code}"


def get_external_hostname(host: str, domain_suffix: str = "kaas.local") -> str:
    """
    Get the fully qualified external hostname for an ingress rule.

    Examples:
        >>> get_external_hostname("shop")
        "shop.kaas.local"

        >>> get_external_hostname("postgres.48213")
        "postgres.48213.kaas.local"
    """
    return f"{host}.{domain_suffix}"
