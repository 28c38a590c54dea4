"""
Secret resolution with fallback across backends.

Backends:
- Environment variables (default), ``SANDBOXER_`` prefixed
- Credentials file (~/.sandboxer/credentials.yaml)

A secret path such as ``realms/arvato/id`` maps to the environment variable
``SANDBOXER_REALMS_ARVATO_ID`` or to the nested YAML key
``realms: {arvato: {id: ...}}``.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()


class SecretBackend(StrEnum):
    """Supported secret backends."""

    ENV = "env"
    FILE = "file"


@dataclass
class SecretConfig:
    """Configuration for secrets resolution."""

    backend: SecretBackend = SecretBackend.ENV
    fallback: list[SecretBackend] = field(
        default_factory=lambda: [SecretBackend.ENV, SecretBackend.FILE]
    )
    env_prefix: str = "SANDBOXER_"
    credentials_file: Path = field(
        default_factory=lambda: Path.home() / ".sandboxer" / "credentials.yaml"
    )


class BaseSecretBackend(ABC):
    """Base class for secret backends."""

    @abstractmethod
    def get_secret(self, path: str) -> str | None:
        """Get a secret by path."""
        pass

    @abstractmethod
    def list_secrets(self) -> list[str]:
        """List available secret paths."""
        pass


class EnvSecretBackend(BaseSecretBackend):
    """Environment variable secret backend."""

    def __init__(self, prefix: str = "SANDBOXER_"):
        self.prefix = prefix

    def get_secret(self, path: str) -> str | None:
        value = os.environ.get(self._path_to_env(path))
        return value or None

    def list_secrets(self) -> list[str]:
        return [self._env_to_path(key) for key in os.environ if key.startswith(self.prefix)]

    def _path_to_env(self, path: str) -> str:
        """Convert secret path to environment variable name."""
        normalized = path.replace("/", "_").replace("-", "_").upper()
        return f"{self.prefix}{normalized}"

    def _env_to_path(self, env_key: str) -> str:
        """Convert environment variable name to secret path."""
        without_prefix = env_key[len(self.prefix) :]
        return without_prefix.lower().replace("_", "/")


class FileSecretBackend(BaseSecretBackend):
    """File-based secret backend using credentials.yaml."""

    def __init__(self, credentials_file: Path):
        self.credentials_file = credentials_file
        self._cache: dict[str, Any] | None = None

    def _load_credentials(self) -> dict[str, Any]:
        if self._cache is not None:
            return self._cache

        if not self.credentials_file.exists():
            self._cache = {}
            return self._cache

        try:
            with open(self.credentials_file) as f:
                self._cache = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(
                "failed_to_load_credentials",
                file=str(self.credentials_file),
                error=str(e),
            )
            self._cache = {}

        return self._cache

    def get_secret(self, path: str) -> str | None:
        current: Any = self._load_credentials()
        for part in path.split("/"):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return None

        if current is None or isinstance(current, dict):
            return None
        return str(current)

    def list_secrets(self) -> list[str]:
        return self._flatten_keys(self._load_credentials())

    def _flatten_keys(self, data: dict, prefix: str = "") -> list[str]:
        keys = []
        for k, v in data.items():
            path = f"{prefix}/{k}" if prefix else str(k)
            if isinstance(v, dict):
                keys.extend(self._flatten_keys(v, path))
            else:
                keys.append(path)
        return keys


class SecretResolver:
    """Resolves secrets from multiple backends with fallback support."""

    def __init__(self, config: SecretConfig | None = None):
        self.config = config or SecretConfig()
        self._backends: dict[SecretBackend, BaseSecretBackend] = {
            SecretBackend.ENV: EnvSecretBackend(self.config.env_prefix),
            SecretBackend.FILE: FileSecretBackend(self.config.credentials_file),
        }

    def _search_order(self) -> list[SecretBackend]:
        order = [self.config.backend]
        order.extend(b for b in self.config.fallback if b != self.config.backend)
        return order

    def resolve(self, path: str) -> str | None:
        """Resolve a secret by path, trying the primary backend then fallbacks."""
        for name in self._search_order():
            value = self._backends[name].get_secret(path)
            if value is not None:
                if name != self.config.backend:
                    logger.debug("secret_resolved_from_fallback", path=path, backend=str(name))
                return value
        return None

    def list_secrets(self) -> dict[SecretBackend, list[str]]:
        """List all available secret paths by backend."""
        result = {}
        for name in self._search_order():
            secrets = self._backends[name].list_secrets()
            if secrets:
                result[name] = secrets
        return result
