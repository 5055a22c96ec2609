from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # ==========================================================================
    # Kubernetes General Settings
    # ==========================================================================
    # Every provisioned resource lives in this single namespace
    k8s_namespace: str = "default"

    # Deadline (seconds) attached to every call into the Kubernetes API
    k8s_request_timeout_seconds: float = 10.0

    k8s_ingress_class: str = "nginx"  # Ingress controller class name

    # Suffix appended to every generated ingress host: {host}.{domain_suffix}
    domain_suffix: str = "kaas.local"

    # ==========================================================================
    # Managed Instance Settings
    # ==========================================================================
    # Upper bound on code draws before giving up on a saturated code space
    instance_code_max_attempts: int = 10

    managed_image: str = "postgres"
    managed_image_tag: str = "13-alpine"
    managed_port: int = 5432
    managed_cpu: str = "500m"
    managed_ram: str = "1Gi"
    managed_replicas: int = 1

    # Generated credentials
    managed_username_length: int = 8
    managed_password_length: int = 16

    # ==========================================================================
    # Health Monitoring Settings
    # ==========================================================================
    # CronJob schedule for the health-check job (cron syntax)
    health_check_schedule: str = "*/1 * * * *"
    health_check_image: str = "curlimages/curl:latest"
    health_check_path: str = "/healthz"

    # Each health-check job probes probes_per_run times, sleeping between probes
    health_check_probe_interval_seconds: int = 5
    health_check_probes_per_run: int = 6

    # How often the reaper polls for finished health-check jobs
    reaper_interval_seconds: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names

@lru_cache()
def get_settings():
    return Settings()
