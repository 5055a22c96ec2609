"""
Kubernetes Manifest Helpers for Provisioning

Pure construction of the resource descriptors that make up one application's
ResourceSet. No I/O happens here.

Resources per application (names derived from the base label):
- ConfigMap  {label}-config      plaintext environment entries
- Secret     {label}-secret      secret environment entries, base64-encoded
- Deployment {label}-deployment  the workload, env injected key by key
- Service    {label}-service     ClusterIP endpoint selecting app={label}
- Ingress    {label}-ingress     only when external access is requested
- CronJob    {label}-cronjob     only when health monitoring is requested
"""

import base64
from kubernetes import client
from typing import Dict, List, Optional

from ...schemas import EnvironmentEntry, ResourceLimits
from ...utils.resource_naming import HEALTH_CHECK_LABEL, ResourceNames


# =============================================================================
# Labels and Environment
# =============================================================================

def get_standard_labels(label: str, component: str) -> Dict[str, str]:
    """
    Get standard labels for an application's resources.

    Args:
        label: Application base name (also the pod selector value)
        component: Component name (config, secret, workload, service, ingress, health-check)

    Returns:
        Dict of labels
    """
    return {
        "app": label,
        "app.kubernetes.io/managed-by": "kaas",
        "kaas.io/component": component,
    }


def partition_environment(envs: List[EnvironmentEntry]) -> tuple[Dict[str, str], Dict[str, str]]:
    """
    Split environment entries into plaintext and secret maps by their secret flag.

    Every entry lands in exactly one of the two maps.

    Returns:
        Tuple of (config_data, secret_data)
    """
    config_data: Dict[str, str] = {}
    secret_data: Dict[str, str] = {}
    for env in envs:
        if env.is_secret:
            secret_data[env.key] = env.value
        else:
            config_data[env.key] = env.value
    return config_data, secret_data


def encode_secret_data(secret_data: Dict[str, str]) -> Dict[str, str]:
    """Base64-encode secret values (standard alphabet, UTF-8) for Secret.data."""
    return {
        key: base64.b64encode(value.encode("utf-8")).decode("ascii")
        for key, value in secret_data.items()
    }


def create_env_vars(
    names: ResourceNames,
    config_data: Dict[str, str],
    secret_data: Dict[str, str]
) -> List[client.V1EnvVar]:
    """
    Create one environment variable per entry, ordered by key.

    Plaintext entries reference the ConfigMap and secret entries reference the
    Secret, so secret values never appear in the Deployment spec.
    """
    env_vars = []
    for key in sorted(set(config_data) | set(secret_data)):
        if key in secret_data:
            source = client.V1EnvVarSource(
                secret_key_ref=client.V1SecretKeySelector(name=names.secret, key=key)
            )
        else:
            source = client.V1EnvVarSource(
                config_map_key_ref=client.V1ConfigMapKeySelector(name=names.config_map, key=key)
            )
        env_vars.append(client.V1EnvVar(name=key, value_from=source))
    return env_vars


# =============================================================================
# ConfigMap and Secret
# =============================================================================

def create_config_map_manifest(
    names: ResourceNames,
    config_data: Dict[str, str]
) -> client.V1ConfigMap:
    """Create ConfigMap manifest holding the plaintext environment."""
    return client.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=client.V1ObjectMeta(
            name=names.config_map,
            labels=get_standard_labels(names.label, "config")
        ),
        data=dict(config_data)
    )


def create_secret_manifest(
    names: ResourceNames,
    secret_data: Dict[str, str]
) -> client.V1Secret:
    """Create Secret manifest holding the base64-encoded secret environment."""
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        type="Opaque",
        metadata=client.V1ObjectMeta(
            name=names.secret,
            labels=get_standard_labels(names.label, "secret")
        ),
        data=encode_secret_data(secret_data)
    )


# =============================================================================
# Deployment
# =============================================================================

def create_deployment_manifest(
    names: ResourceNames,
    image_address: str,
    image_tag: str,
    replicas: int,
    port: int,
    resources: ResourceLimits,
    config_data: Dict[str, str],
    secret_data: Dict[str, str]
) -> client.V1Deployment:
    """
    Create Deployment manifest for an application.

    Resource limits are applied both as requests and as hard limits.

    Args:
        names: Resource names of the application
        image_address: Image repository (e.g., "nginx")
        image_tag: Image tag (e.g., "stable")
        replicas: Desired replica count
        port: Container port
        resources: CPU and RAM quantities
        config_data: Plaintext environment entries
        secret_data: Secret environment entries (raw, referenced by key)

    Returns:
        V1Deployment manifest
    """
    quantities = {"cpu": resources.cpu, "memory": resources.ram}

    container = client.V1Container(
        name=names.label,
        image=f"{image_address}:{image_tag}",
        ports=[client.V1ContainerPort(container_port=port)],
        resources=client.V1ResourceRequirements(
            requests=dict(quantities),
            limits=dict(quantities)
        ),
        env=create_env_vars(names, config_data, secret_data)
    )

    selector_labels = {"app": names.label}

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=client.V1ObjectMeta(
            name=names.deployment,
            labels=get_standard_labels(names.label, "workload")
        ),
        spec=client.V1DeploymentSpec(
            replicas=replicas,
            selector=client.V1LabelSelector(match_labels=selector_labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=get_standard_labels(names.label, "workload")),
                spec=client.V1PodSpec(containers=[container])
            )
        )
    )


# =============================================================================
# Service and Ingress
# =============================================================================

def create_service_manifest(names: ResourceNames, port: int) -> client.V1Service:
    """Create Service manifest exposing the application's pods."""
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=names.service,
            labels=get_standard_labels(names.label, "service")
        ),
        spec=client.V1ServiceSpec(
            selector={"app": names.label},
            ports=[
                client.V1ServicePort(
                    port=port,
                    target_port=port,
                    protocol="TCP"
                )
            ],
            type="ClusterIP"
        )
    )


def create_ingress_manifest(
    names: ResourceNames,
    hostname: str,
    port: int,
    ingress_class: Optional[str] = "nginx"
) -> client.V1Ingress:
    """
    Create Ingress manifest routing a single host to the application's Service.

    Args:
        names: Resource names of the application
        hostname: Fully qualified host (e.g., "shop.kaas.local")
        port: Service port
        ingress_class: Ingress class name (None to use the cluster default)

    Returns:
        V1Ingress manifest
    """
    return client.V1Ingress(
        api_version="networking.k8s.io/v1",
        kind="Ingress",
        metadata=client.V1ObjectMeta(
            name=names.ingress,
            labels=get_standard_labels(names.label, "ingress")
        ),
        spec=client.V1IngressSpec(
            ingress_class_name=ingress_class or None,
            rules=[
                client.V1IngressRule(
                    host=hostname,
                    http=client.V1HTTPIngressRuleValue(
                        paths=[
                            client.V1HTTPIngressPath(
                                path="/",
                                path_type="Prefix",
                                backend=client.V1IngressBackend(
                                    service=client.V1IngressServiceBackend(
                                        name=names.service,
                                        port=client.V1ServiceBackendPort(number=port)
                                    )
                                )
                            )
                        ]
                    )
                )
            ]
        )
    )


# =============================================================================
# Health Check CronJob
# =============================================================================

def generate_probe_script(
    service_name: str,
    port: int,
    path: str = "/healthz",
    probes: int = 6,
    interval_seconds: int = 5
) -> str:
    """
    Generate the shell loop run by each health-check job.

    Each probe prints the HTTP status line returned by the service, e.g.
    "HTTP/1.1 200 OK", so the reaper can classify the result from the logs.
    """
    url = f"http://{service_name}:{port}{path}"
    return (
        f"for i in $(seq 1 {probes}); do "
        f"curl -s -i -o - --max-time {interval_seconds} {url} | head -n 1; "
        f"sleep {interval_seconds}; "
        f"done"
    )


def create_health_check_cronjob_manifest(
    names: ResourceNames,
    port: int,
    schedule: str = "*/1 * * * *",
    image: str = "curlimages/curl:latest",
    path: str = "/healthz",
    probes: int = 6,
    interval_seconds: int = 5
) -> client.V1CronJob:
    """
    Create the periodic health-check CronJob for an application.

    Jobs spawned from this CronJob, and their pods, carry the
    HEALTH_CHECK_LABEL={label} label so the reaper can discover them.

    Returns:
        V1CronJob manifest
    """
    health_labels = {
        **get_standard_labels(names.label, "health-check"),
        HEALTH_CHECK_LABEL: names.label,
    }
    # The probe pod must not match the application's Service selector
    pod_labels = {k: v for k, v in health_labels.items() if k != "app"}

    probe_container = client.V1Container(
        name="health-probe",
        image=image,
        command=["/bin/sh", "-c"],
        args=[generate_probe_script(names.service, port, path, probes, interval_seconds)]
    )

    return client.V1CronJob(
        api_version="batch/v1",
        kind="CronJob",
        metadata=client.V1ObjectMeta(
            name=names.cronjob,
            labels=health_labels
        ),
        spec=client.V1CronJobSpec(
            schedule=schedule,
            concurrency_policy="Forbid",
            job_template=client.V1JobTemplateSpec(
                metadata=client.V1ObjectMeta(labels=pod_labels),
                spec=client.V1JobSpec(
                    backoff_limit=0,
                    template=client.V1PodTemplateSpec(
                        metadata=client.V1ObjectMeta(labels=pod_labels),
                        spec=client.V1PodSpec(
                            restart_policy="Never",
                            containers=[probe_container]
                        )
                    )
                )
            )
        )
    )
