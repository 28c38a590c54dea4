"""
Operation context passed explicitly into every sandbox operation.

All pre-flight resolution happens here: the active realm's credentials, the
operator credentials and, when required, the sandbox selection and source
repository token. Nothing remote is touched until the context is complete.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import structlog

from sandboxer.config.settings import Settings
from sandboxer.context import ActiveContext
from sandboxer.core.errors import MissingSelection
from sandboxer.credentials import CredentialResolver, OperatorCredentials, Realm
from sandboxer.sandbox.client import SandboxClient

logger = structlog.get_logger()


@dataclass(frozen=True)
class OperationContext:
    """Everything a remote operation needs, resolved up front."""

    realm: Realm
    operator: OperatorCredentials
    settings: Settings
    sandbox_alias: str | None = None
    source_token: str | None = None

    def require_sandbox(self) -> str:
        if not self.sandbox_alias:
            raise MissingSelection("sandbox")
        return self.sandbox_alias

    def require_source_token(self) -> str:
        if not self.source_token:
            raise MissingSelection("source repository token")
        return self.source_token

    def with_sandbox(self, alias: str) -> OperationContext:
        return replace(self, sandbox_alias=alias)


def build_operation_context(
    active: ActiveContext,
    credentials: CredentialResolver,
    settings: Settings,
    *,
    require_sandbox: bool = False,
    require_source: bool = False,
) -> OperationContext:
    """
    Resolve the operation context for the active realm.

    Raises:
        MissingSelection: a sandbox is required but none is selected
        MissingCredential: any required credential is absent
    """
    if not active.realm_name:
        raise MissingSelection("realm")
    if require_sandbox and not active.sandbox_alias:
        raise MissingSelection("sandbox")

    realm = credentials.resolve_realm(active.realm_name)
    operator = credentials.resolve_operator()
    token = credentials.resolve_source_token() if require_source else None

    return OperationContext(
        realm=realm,
        operator=operator,
        settings=settings,
        sandbox_alias=active.sandbox_alias,
        source_token=token,
    )


def authenticate(client: SandboxClient, context: OperationContext) -> None:
    """Establish a fresh session for the realm's API client and the operator."""
    client.authenticate(
        context.realm.client_id,
        context.realm.client_secret,
        context.operator.user,
        context.operator.password,
    )
    logger.info("sandbox_session_established", realm=context.realm.name)
