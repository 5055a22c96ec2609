"""Utility modules for the KaaS service."""

from .resource_naming import (
    ResourceNames,
    normalize_app_name,
    get_resource_names,
    get_managed_label,
    get_managed_host,
    get_external_hostname,
)
from .credentials import (
    generate_instance_code_candidate,
    generate_password,
    generate_username,
)

__all__ = [
    'ResourceNames',
    'normalize_app_name',
    'get_resource_names',
    'get_managed_label',
    'get_managed_host',
    'get_external_hostname',
    'generate_instance_code_candidate',
    'generate_password',
    'generate_username',
]
