"""
Configuration for Custodian
"""

from .settings import Settings, get_settings, REGISTRY_DATABASES

__all__ = ['Settings', 'get_settings', 'REGISTRY_DATABASES']
