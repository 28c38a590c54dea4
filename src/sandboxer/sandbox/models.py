"""Shapes returned by the sandbox API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SandboxInfo:
    """One sandbox instance as reported by the remote API."""

    alias: str
    realm: str
    instance: str
    host_name: str | None = None
    management_url: str | None = None
    state: str | None = None
    created_by: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> SandboxInfo:
        realm = str(data.get("realm", ""))
        instance = str(data.get("instance", ""))
        alias = data.get("alias") or (f"{realm}-{instance}" if realm and instance else data.get("id", ""))
        links = data.get("links") or {}
        return cls(
            alias=str(alias),
            realm=realm,
            instance=instance,
            host_name=data.get("hostName") or data.get("host_name"),
            management_url=links.get("bm") or data.get("managementUrl"),
            state=data.get("state"),
            created_by=data.get("createdBy") or data.get("created_by"),
        )


@dataclass(frozen=True)
class CodeVersion:
    id: str
    active: bool = False

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> CodeVersion:
        return cls(id=str(data["id"]), active=bool(data.get("active", False)))
