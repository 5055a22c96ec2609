"""
Services Module

This module contains all backend services for KaaS.

Key Submodules:
- provisioning: ResourceSet composition, existence checks, managed instances,
  health monitoring and status queries against the Kubernetes API

Usage:
    from kaas.services.provisioning import ProvisioningOrchestrator, StatusService
"""
