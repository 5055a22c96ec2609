from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional, List

# Wire format uses PascalCase keys (AppName, ImageTag, ...); Python code uses snake_case.

class EnvironmentEntry(BaseModel):
    key: str = Field(..., alias="Key", min_length=1)
    value: str = Field("", alias="Value")
    is_secret: bool = Field(False, alias="IsSecret")

    class Config:
        populate_by_name = True

class ResourceLimits(BaseModel):
    # Opaque quantity strings ("500m", "1Gi"); the API server validates them
    cpu: str = Field(..., alias="CPU", min_length=1)
    ram: str = Field(..., alias="RAM", min_length=1)

    class Config:
        populate_by_name = True

class ProvisionRequest(BaseModel):
    app_name: str = Field(..., alias="AppName")
    replicas: int = Field(1, alias="Replicas", ge=0)
    image_address: str = Field(..., alias="ImageAddress", min_length=1)
    image_tag: str = Field("latest", alias="ImageTag", min_length=1)
    domain_address: Optional[str] = Field(None, alias="DomainAddress")
    service_port: int = Field(..., alias="ServicePort", ge=1, le=65535)
    resources: ResourceLimits = Field(..., alias="Resources")
    envs: List[EnvironmentEntry] = Field(default_factory=list, alias="Envs")
    monitor: bool = Field(False, alias="Monitor")
    external_access: bool = Field(False, alias="ExternalAccess")

    class Config:
        populate_by_name = True

    @field_validator('app_name')
    @classmethod
    def validate_app_name(cls, v):
        if not v.strip():
            raise ValueError('AppName must not be empty')
        return v

    @model_validator(mode='after')
    def validate_domain(self):
        if self.external_access and not (self.domain_address or "").strip():
            raise ValueError('DomainAddress is required when ExternalAccess is set')
        return self

class ManagedProvisionRequest(BaseModel):
    envs: List[EnvironmentEntry] = Field(default_factory=list, alias="Envs")
    external_access: bool = Field(False, alias="ExternalAccess")

    class Config:
        populate_by_name = True

class ProvisionResponse(BaseModel):
    message: str = Field(..., alias="Message")

    class Config:
        populate_by_name = True

class ManagedProvisionResponse(BaseModel):
    username: str = Field(..., alias="Username")
    password: str = Field(..., alias="Password")
    message: str = Field(..., alias="Message")

    class Config:
        populate_by_name = True

class PodStatus(BaseModel):
    name: str = Field(..., alias="Name")
    phase: Optional[str] = Field(None, alias="Phase")
    host_ip: Optional[str] = Field(None, alias="HostID")
    pod_ip: Optional[str] = Field(None, alias="PodIP")
    start_time: Optional[datetime] = Field(None, alias="StartTime")

    class Config:
        populate_by_name = True

class DeploymentStatus(BaseModel):
    deployment_name: str = Field(..., alias="DeploymentName")
    replicas: int = Field(0, alias="Replicas")
    ready_replicas: int = Field(0, alias="ReadyReplicas")
    pod_statuses: List[PodStatus] = Field(default_factory=list, alias="PodStatuses")

    class Config:
        populate_by_name = True
