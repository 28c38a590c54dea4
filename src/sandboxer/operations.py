"""
Realm and sandbox operations outside the deployment pipeline.

Selection operations only touch the context store; sandbox creation and
listing authenticate first and then call the sandbox client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import structlog

from sandboxer.context import ContextStore, resolve_sandbox_alias
from sandboxer.core.errors import OperationDeclined, SandboxerError
from sandboxer.credentials import CredentialResolver, Realm
from sandboxer.sandbox.client import SandboxClient
from sandboxer.sandbox.models import SandboxInfo
from sandboxer.session import OperationContext, authenticate

logger = structlog.get_logger()

Confirm = Callable[[str], bool]


@dataclass(frozen=True)
class SandboxRef:
    """A sandbox alias and the realm it was resolved against."""

    alias: str
    realm: Realm


def require_confirmation(confirm: Confirm, message: str) -> None:
    """Ask ``confirm``; raise OperationDeclined unless the answer is yes."""
    if not confirm(message):
        raise OperationDeclined(f"Declined: {message}")


def select_realm(store: ContextStore, credentials: CredentialResolver, name: str) -> Realm:
    """Make ``name`` the active realm once its credentials resolve."""
    realm = credentials.resolve_realm(name)
    store.set_realm(name)
    return realm


def select_sandbox(
    store: ContextStore, credentials: CredentialResolver, value: str | int
) -> SandboxRef:
    """
    Make a sandbox the active one.

    ``value`` is an explicit alias or a numeric index, which is formatted
    against the id of the realm active right now.
    """
    realm = credentials.resolve_realm(store.load().realm_name)
    alias = resolve_sandbox_alias(value, realm.id)
    store.set_sandbox(alias)
    return SandboxRef(alias=alias, realm=realm)


def list_sandboxes(context: OperationContext, client: SandboxClient) -> list[SandboxInfo]:
    authenticate(client, context)
    return client.list_sandboxes()


def create_sandbox(
    context: OperationContext, client: SandboxClient, store: ContextStore
) -> SandboxRef:
    """Create a sandbox in the active realm and select it."""
    authenticate(client, context)
    info = client.create_sandbox(context.realm.id)
    store.set_sandbox(info.alias)
    logger.info("sandbox_created", realm=context.realm.name, sandbox=info.alias)
    return SandboxRef(alias=info.alias, realm=context.realm)


def describe_sandbox(client: SandboxClient, alias: str) -> SandboxInfo | None:
    """Best-effort lookup of a sandbox's details; None when unavailable."""
    try:
        return client.get_sandbox(alias)
    except SandboxerError as e:
        logger.warning("sandbox_lookup_failed", sandbox=alias, error=e.message)
        return None
