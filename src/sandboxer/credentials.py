"""
Credential resolution for realms and the operator.

Realm-scoped keys live under ``realms/<name>/`` (``id``, ``client``,
``secret``); global keys are ``api/user``, ``api/password`` and
``git/token``. Resolution fails closed: a partial credential set never
produces a usable Realm.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from sandboxer.config.secrets import SecretResolver
from sandboxer.core.errors import MissingCredential

logger = structlog.get_logger()

REALM_PREFIX = "realms"
REALM_ID = "id"
REALM_CLIENT_ID = "client"
REALM_CLIENT_SECRET = "secret"

API_USER_KEY = "api/user"
API_PASSWORD_KEY = "api/password"
SOURCE_TOKEN_KEY = "git/token"


def realm_key(name: str, field: str) -> str:
    """Fully-qualified credential key for a realm-scoped field."""
    return f"{REALM_PREFIX}/{name}/{field}"


@dataclass(frozen=True)
class Realm:
    """A named tenant grouping of sandboxes with its API client credentials."""

    name: str
    id: str
    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"Realm(name={self.name!r}, id={self.id!r}, client_id={self.client_id!r})"


@dataclass(frozen=True)
class OperatorCredentials:
    """Global API user credentials used alongside realm client credentials."""

    user: str
    password: str

    def __repr__(self) -> str:
        return f"OperatorCredentials(user={self.user!r})"


@dataclass(frozen=True)
class RealmListing:
    """One realm found in the credential sources."""

    name: str
    id: str
    active: bool


class CredentialResolver:
    """Looks up realm-scoped and global credentials."""

    def __init__(self, secrets: SecretResolver):
        self._secrets = secrets

    def resolve(self, key: str) -> str:
        """Return the credential for ``key`` or raise MissingCredential."""
        value = self._secrets.resolve(key)
        if value is None:
            logger.debug("credential_missing", key=key)
            raise MissingCredential(key)
        return value

    def resolve_realm(self, name: str) -> Realm:
        return Realm(
            name=name,
            id=self.resolve(realm_key(name, REALM_ID)),
            client_id=self.resolve(realm_key(name, REALM_CLIENT_ID)),
            client_secret=self.resolve(realm_key(name, REALM_CLIENT_SECRET)),
        )

    def resolve_operator(self) -> OperatorCredentials:
        return OperatorCredentials(
            user=self.resolve(API_USER_KEY),
            password=self.resolve(API_PASSWORD_KEY),
        )

    def resolve_source_token(self) -> str:
        return self.resolve(SOURCE_TOKEN_KEY)

    def list_realms(self, active_name: str | None = None) -> list[RealmListing]:
        """Enumerate realms that have an id key in any credential source."""
        names: set[str] = set()
        for paths in self._secrets.list_secrets().values():
            for path in paths:
                parts = path.split("/")
                if len(parts) >= 3 and parts[0] == REALM_PREFIX and parts[-1] == REALM_ID:
                    names.add("_".join(parts[1:-1]))

        listings = []
        for name in sorted(names):
            realm_id = self._secrets.resolve(realm_key(name, REALM_ID))
            if realm_id is None:
                continue
            listings.append(
                RealmListing(name=name, id=realm_id, active=_same_realm(name, active_name))
            )
        return listings


def _same_realm(name: str, active_name: str | None) -> bool:
    if active_name is None:
        return False
    return name.replace("-", "_").lower() == active_name.replace("-", "_").lower()
