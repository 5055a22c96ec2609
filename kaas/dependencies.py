"""
FastAPI dependencies.

The Kubernetes client and the reaper registry are built once at startup and
kept on app.state; these dependencies hand them to request handlers.
"""

from fastapi import Depends, Request

from .config import Settings, get_settings
from .services.provisioning import KubernetesClient, ReaperRegistry, ProvisioningOrchestrator, StatusService


def get_k8s_client(request: Request) -> KubernetesClient:
    return request.app.state.k8s_client


def get_reaper_registry(request: Request) -> ReaperRegistry:
    return request.app.state.reapers


def get_orchestrator(
    k8s_client: KubernetesClient = Depends(get_k8s_client),
    reapers: ReaperRegistry = Depends(get_reaper_registry),
    settings: Settings = Depends(get_settings)
) -> ProvisioningOrchestrator:
    return ProvisioningOrchestrator(k8s_client, reapers, settings)


def get_status_service(k8s_client: KubernetesClient = Depends(get_k8s_client)) -> StatusService:
    return StatusService(k8s_client)
