"""Root test configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import structlog
from sandboxer.config.secrets import SecretConfig, SecretResolver
from sandboxer.config.settings import Settings
from sandboxer.credentials import CredentialResolver, OperatorCredentials, Realm
from sandboxer.sandbox.models import CodeVersion, SandboxInfo
from sandboxer.session import OperationContext


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeSandboxClient:
    """Records every call; failures are injected per method name."""

    def __init__(
        self,
        code_versions: list[CodeVersion] | None = None,
        sandbox: SandboxInfo | None = None,
        failures: dict[str, Exception] | None = None,
    ):
        self.calls: list[tuple] = []
        self.code_versions = code_versions if code_versions is not None else [
            CodeVersion(id="version1", active=False)
        ]
        self.sandbox = sandbox or SandboxInfo(
            alias="zzzz-003",
            realm="zzzz",
            instance="003",
            host_name="zzzz-003.sandbox.example.com",
            management_url="https://zzzz-003.sandbox.example.com/on/demandware.store/Sites-Site",
            state="started",
        )
        self.failures = failures or {}

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def authenticate(self, client_id, client_secret, user, password):
        self._record("authenticate", client_id, user)

    def list_sandboxes(self):
        self._record("list_sandboxes")
        return [self.sandbox]

    def create_sandbox(self, realm_id):
        self._record("create_sandbox", realm_id)
        return self.sandbox

    def get_sandbox(self, alias):
        self._record("get_sandbox", alias)
        return self.sandbox

    def deploy_code(self, archive, alias):
        self._record("deploy_code", Path(archive).name, alias)

    def list_code_versions(self, alias):
        self._record("list_code_versions", alias)
        return list(self.code_versions)

    def activate_code(self, version_id, alias):
        self._record("activate_code", version_id, alias)

    def upload_data(self, archive, alias):
        self._record("upload_data", Path(archive).name, alias)

    def import_data(self, archive, alias):
        self._record("import_data", Path(archive).name, alias)

    def run_job(self, job_name, alias):
        self._record("run_job", job_name, alias)


class FakeSourceFetcher:
    """Creates a tree resembling the checked-out repository."""

    def __init__(self, data_archive: str = "demo_data_sfra.zip", produce_archive: bool = True):
        self.fetched: list[str] = []
        self.data_archive = data_archive
        self.produce_archive = produce_archive

    def fetch(self, recipe, dest):
        self.fetched.append(recipe.name)
        dest.mkdir(parents=True, exist_ok=True)
        if recipe.name == "code":
            cartridge = dest / "cartridges" / "app_storefront_base"
            cartridge.mkdir(parents=True)
            (cartridge / "package.json").write_text("{}")
        elif self.produce_archive:
            (dest / self.data_archive).write_bytes(b"PK\x05\x06" + b"\x00" * 18)
        return dest


class FakeAssetBuilder:
    def __init__(self, fail_on: str | None = None, error: Exception | None = None):
        self.built: list[str] = []
        self.fail_on = fail_on
        self.error = error

    def build(self, recipe, tree):
        if recipe.name == self.fail_on:
            raise self.error
        self.built.append(recipe.name)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(state_dir=tmp_path / "state", default_realm="arvato")


@pytest.fixture
def realm() -> Realm:
    return Realm(name="arvato", id="zzzz", client_id="client-abc", client_secret="s3cret")


@pytest.fixture
def operation_context(realm, settings) -> OperationContext:
    return OperationContext(
        realm=realm,
        operator=OperatorCredentials(user="ops@example.com", password="hunter2"),
        settings=settings,
        sandbox_alias="zzzz-003",
        source_token="ghp_token123",
    )


@pytest.fixture
def realm_env(monkeypatch):
    """Credentials for realm 'arvato' (id zzzz) plus the operator, via env."""
    monkeypatch.setenv("SANDBOXER_REALMS_ARVATO_ID", "zzzz")
    monkeypatch.setenv("SANDBOXER_REALMS_ARVATO_CLIENT", "client-abc")
    monkeypatch.setenv("SANDBOXER_REALMS_ARVATO_SECRET", "s3cret")
    monkeypatch.setenv("SANDBOXER_API_USER", "ops@example.com")
    monkeypatch.setenv("SANDBOXER_API_PASSWORD", "hunter2")
    monkeypatch.setenv("SANDBOXER_GIT_TOKEN", "ghp_token123")


@pytest.fixture
def credentials(settings) -> CredentialResolver:
    return CredentialResolver(
        SecretResolver(SecretConfig(credentials_file=settings.credentials_file))
    )


@pytest.fixture
def fake_client() -> FakeSandboxClient:
    return FakeSandboxClient()
