"""
Configuration for sandboxer.

- settings: environment-driven application settings
- secrets: credential lookup across environment and credentials file
"""

from sandboxer.config.secrets import (
    BaseSecretBackend,
    EnvSecretBackend,
    FileSecretBackend,
    SecretBackend,
    SecretConfig,
    SecretResolver,
)
from sandboxer.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "SecretBackend",
    "SecretConfig",
    "BaseSecretBackend",
    "EnvSecretBackend",
    "FileSecretBackend",
    "SecretResolver",
]
