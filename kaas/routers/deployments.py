"""
Deployments API Router.

This module provides the provisioning endpoints:
- Unmanaged applications described by the caller
- Managed database instances with generated credentials
- Deployment status, for one application or all of them
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_orchestrator, get_status_service
from ..exceptions import ProvisioningError, ResourceConflictError, WorkloadNotFoundError
from ..schemas import (
    ProvisionRequest,
    ProvisionResponse,
    ManagedProvisionRequest,
    ManagedProvisionResponse,
    DeploymentStatus,
)
from ..services.provisioning import ProvisioningOrchestrator, StatusService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["deployments"])

INTERNAL_ERROR = "Internal server error"
BAD_REQUEST = "Request body doesn't have correct format"


@router.post("/deploy-unmanaged", response_model=ProvisionResponse)
async def deploy_unmanaged(
    request: ProvisionRequest,
    orchestrator: ProvisioningOrchestrator = Depends(get_orchestrator)
):
    """
    Provision an application described by the caller.

    Creates ConfigMap, Secret, Deployment and Service, plus a health-check
    CronJob when Monitor is set and an Ingress when ExternalAccess is set.
    """
    try:
        result = await orchestrator.deploy_unmanaged(request)
    except ResourceConflictError as e:
        raise HTTPException(status_code=status.HTTP_406_NOT_ACCEPTABLE, detail=e.reason)
    except ProvisioningError as e:
        logger.error(f"Unmanaged deployment of {request.app_name} failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)

    return ProvisionResponse(message=result.message)


@router.post("/deploy-managed", response_model=ManagedProvisionResponse)
async def deploy_managed(
    request: ManagedProvisionRequest,
    orchestrator: ProvisioningOrchestrator = Depends(get_orchestrator)
):
    """Provision a managed PostgreSQL instance and return its generated credentials."""
    try:
        result = await orchestrator.deploy_managed(request)
    except ResourceConflictError as e:
        raise HTTPException(status_code=status.HTTP_406_NOT_ACCEPTABLE, detail=e.reason)
    except ProvisioningError as e:
        logger.error(f"Managed deployment failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)

    return ManagedProvisionResponse(
        username=result.username,
        password=result.password,
        message=result.message,
    )


@router.get("/get-deployment/{app_name}", response_model=DeploymentStatus)
async def get_deployment(
    app_name: str,
    status_service: StatusService = Depends(get_status_service)
):
    """Get replica counts and pod statuses of one application."""
    try:
        return await status_service.get_status(app_name)
    except WorkloadNotFoundError:
        raise HTTPException(status_code=status.HTTP_406_NOT_ACCEPTABLE, detail="Deployment not found")
    except ProvisioningError as e:
        logger.error(f"Status of {app_name} failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get("/get-all-deployments", response_model=List[DeploymentStatus])
async def get_all_deployments(
    status_service: StatusService = Depends(get_status_service)
):
    """Get replica counts and pod statuses of every deployment in the namespace."""
    try:
        return await status_service.get_all_statuses()
    except ProvisioningError as e:
        logger.error(f"Listing deployments failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
