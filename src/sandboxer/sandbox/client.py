"""
Sandbox API client.

``SandboxClient`` is the capability interface the pipeline depends on.
``SandboxCliClient`` drives the operator's installed ``sfcc-ci`` tool; all of
its output is appended to the run log through a ``CommandRunner``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

import structlog

from sandboxer.core.errors import AuthError, DeployError, RemoteOperationError
from sandboxer.runner import CommandRunner
from sandboxer.sandbox.models import CodeVersion, SandboxInfo

logger = structlog.get_logger()


@runtime_checkable
class SandboxClient(Protocol):
    """Remote sandbox operations consumed by sandboxer."""

    def authenticate(self, client_id: str, client_secret: str, user: str, password: str) -> None: ...

    def list_sandboxes(self) -> list[SandboxInfo]: ...

    def create_sandbox(self, realm_id: str) -> SandboxInfo: ...

    def get_sandbox(self, alias: str) -> SandboxInfo: ...

    def deploy_code(self, archive: Path, alias: str) -> None: ...

    def list_code_versions(self, alias: str) -> list[CodeVersion]: ...

    def activate_code(self, version_id: str, alias: str) -> None: ...

    def upload_data(self, archive: Path, alias: str) -> None: ...

    def import_data(self, archive: Path, alias: str) -> None:
        """Import an uploaded archive, blocking until the remote side finishes."""
        ...

    def run_job(self, job_name: str, alias: str) -> None:
        """Run a background job, blocking until it completes."""
        ...


class SandboxCliClient:
    """SandboxClient backed by the ``sfcc-ci`` command line tool."""

    def __init__(self, runner: CommandRunner, binary: str = "sfcc-ci"):
        self._runner = runner
        self._binary = binary
        self._hosts: dict[str, str] = {}

    def authenticate(self, client_id: str, client_secret: str, user: str, password: str) -> None:
        self._runner.add_secret(client_secret)
        self._runner.add_secret(password)
        result = self._runner.run([self._binary, "client:auth", client_id, client_secret, user, password])
        if not result.ok:
            raise AuthError(
                "Authentication was rejected",
                {"client_id": client_id, "log_path": str(self._runner.log_path)},
            )
        logger.debug("authenticated", client_id=client_id)

    def list_sandboxes(self) -> list[SandboxInfo]:
        data = self._json(["sandbox:list", "--json"], "list sandboxes")
        return [SandboxInfo.from_payload(item) for item in _as_list(data)]

    def create_sandbox(self, realm_id: str) -> SandboxInfo:
        data = self._json(
            ["sandbox:create", "--realm", realm_id, "--sync", "--json"],
            "create sandbox",
        )
        info = SandboxInfo.from_payload(_as_dict(data, "create sandbox"))
        if not info.alias:
            raise RemoteOperationError("Sandbox creation returned no alias", {"realm": realm_id})
        if info.host_name:
            self._hosts[info.alias] = info.host_name
        return info

    def get_sandbox(self, alias: str) -> SandboxInfo:
        data = self._json(["sandbox:get", "--sandbox", alias, "--json"], "get sandbox")
        info = SandboxInfo.from_payload(_as_dict(data, "get sandbox"))
        if info.host_name:
            self._hosts[alias] = info.host_name
        return info

    def deploy_code(self, archive: Path, alias: str) -> None:
        result = self._runner.run(
            [self._binary, "code:deploy", str(archive), "--instance", self._host(alias)]
        )
        if not result.ok:
            raise DeployError(
                f"Code deploy of {archive.name} to {alias} was rejected",
                {"sandbox": alias, "log_path": str(self._runner.log_path)},
            )

    def list_code_versions(self, alias: str) -> list[CodeVersion]:
        data = self._json(
            ["code:list", "--instance", self._host(alias), "--json"], "list code versions"
        )
        return [CodeVersion.from_payload(item) for item in _as_list(data)]

    def activate_code(self, version_id: str, alias: str) -> None:
        self._check(
            ["code:activate", version_id, "--instance", self._host(alias)],
            f"activate code version {version_id}",
        )

    def upload_data(self, archive: Path, alias: str) -> None:
        self._check(
            ["instance:upload", str(archive), "--instance", self._host(alias)],
            f"upload {archive.name}",
        )

    def import_data(self, archive: Path, alias: str) -> None:
        self._check(
            ["instance:import", archive.name, "--instance", self._host(alias), "--sync"],
            f"import {archive.name}",
        )

    def run_job(self, job_name: str, alias: str) -> None:
        self._check(
            ["job:run", job_name, "--instance", self._host(alias), "--sync"],
            f"run job {job_name}",
        )

    def _host(self, alias: str) -> str:
        if alias not in self._hosts:
            info = self.get_sandbox(alias)
            if not info.host_name:
                raise RemoteOperationError(
                    f"Sandbox {alias} has no host name", {"sandbox": alias}
                )
        return self._hosts[alias]

    def _check(self, args: Sequence[str], action: str) -> None:
        result = self._runner.run([self._binary, *args])
        if not result.ok:
            raise RemoteOperationError(
                f"Failed to {action}",
                {"returncode": result.returncode, "log_path": str(self._runner.log_path)},
            )

    def _json(self, args: Sequence[str], action: str) -> Any:
        result = self._runner.run([self._binary, *args], capture=True)
        if not result.ok:
            raise RemoteOperationError(
                f"Failed to {action}",
                {"returncode": result.returncode, "log_path": str(self._runner.log_path)},
            )
        try:
            data = json.loads(result.stdout or "null")
        except json.JSONDecodeError as e:
            raise RemoteOperationError(
                f"Failed to {action}: unreadable response ({e})",
                {"log_path": str(self._runner.log_path)},
            ) from e
        if isinstance(data, dict) and data.get("error"):
            raise RemoteOperationError(
                f"Failed to {action}: {data['error']}",
                {"log_path": str(self._runner.log_path)},
            )
        return data


def _as_list(data: Any) -> list[dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("data", [data])
    return [item for item in data if isinstance(item, dict)]


def _as_dict(data: Any, action: str) -> dict[str, Any]:
    if isinstance(data, dict):
        nested = data.get("sandbox")
        return nested if isinstance(nested, dict) else data
    raise RemoteOperationError(f"Failed to {action}: unexpected response")
