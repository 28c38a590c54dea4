"""Tests for credentials.py and config/secrets.py.

Tests for credential lookup across environment and credentials file.
"""

import pytest
import yaml
from sandboxer.config.secrets import (
    EnvSecretBackend,
    FileSecretBackend,
    SecretBackend,
    SecretConfig,
    SecretResolver,
)
from sandboxer.core.errors import MissingCredential
from sandboxer.credentials import CredentialResolver, realm_key


class TestEnvSecretBackend:
    def test_path_to_env(self, monkeypatch):
        monkeypatch.setenv("SANDBOXER_REALMS_MY_REALM_ID", "abcd")
        backend = EnvSecretBackend()

        assert backend.get_secret("realms/my-realm/id") == "abcd"

    def test_empty_value_treated_as_missing(self, monkeypatch):
        monkeypatch.setenv("SANDBOXER_API_USER", "")
        backend = EnvSecretBackend()

        assert backend.get_secret("api/user") is None

    def test_list_secrets(self, monkeypatch):
        monkeypatch.setenv("SANDBOXER_REALMS_ARVATO_ID", "zzzz")
        backend = EnvSecretBackend()

        assert "realms/arvato/id" in backend.list_secrets()


class TestFileSecretBackend:
    def test_nested_lookup(self, tmp_path):
        creds = tmp_path / "credentials.yaml"
        creds.write_text(yaml.dump({"realms": {"acme": {"id": "bcxx", "client": "c1"}}}))
        backend = FileSecretBackend(creds)

        assert backend.get_secret("realms/acme/id") == "bcxx"
        assert backend.get_secret("realms/acme/secret") is None
        assert backend.get_secret("realms/acme") is None

    def test_missing_file(self, tmp_path):
        backend = FileSecretBackend(tmp_path / "nope.yaml")

        assert backend.get_secret("api/user") is None
        assert backend.list_secrets() == []

    def test_invalid_yaml_treated_as_empty(self, tmp_path):
        creds = tmp_path / "credentials.yaml"
        creds.write_text("realms: [unclosed")
        backend = FileSecretBackend(creds)

        assert backend.get_secret("realms/acme/id") is None


class TestSecretResolver:
    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        creds = tmp_path / "credentials.yaml"
        creds.write_text(yaml.dump({"api": {"user": "from-file"}}))
        monkeypatch.setenv("SANDBOXER_API_USER", "from-env")
        resolver = SecretResolver(SecretConfig(credentials_file=creds))

        assert resolver.resolve("api/user") == "from-env"

    def test_falls_back_to_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SANDBOXER_API_USER", raising=False)
        creds = tmp_path / "credentials.yaml"
        creds.write_text(yaml.dump({"api": {"user": "from-file"}}))
        resolver = SecretResolver(SecretConfig(credentials_file=creds))

        assert resolver.resolve("api/user") == "from-file"

    def test_file_primary(self, tmp_path, monkeypatch):
        creds = tmp_path / "credentials.yaml"
        creds.write_text(yaml.dump({"api": {"user": "from-file"}}))
        monkeypatch.setenv("SANDBOXER_API_USER", "from-env")
        config = SecretConfig(backend=SecretBackend.FILE, credentials_file=creds)

        assert SecretResolver(config).resolve("api/user") == "from-file"


class TestCredentialResolver:
    """Tests for CredentialResolver."""

    def test_resolve_realm(self, realm_env, credentials):
        realm = credentials.resolve_realm("arvato")

        assert realm.id == "zzzz"
        assert realm.client_id == "client-abc"
        assert realm.client_secret == "s3cret"

    def test_unknown_realm_fails(self, realm_env, credentials):
        with pytest.raises(MissingCredential) as exc_info:
            credentials.resolve_realm("unknown")

        assert exc_info.value.key == realm_key("unknown", "id")

    def test_partial_realm_fails_closed(self, realm_env, credentials, monkeypatch):
        monkeypatch.delenv("SANDBOXER_REALMS_ARVATO_SECRET")

        with pytest.raises(MissingCredential) as exc_info:
            credentials.resolve_realm("arvato")

        assert exc_info.value.key == "realms/arvato/secret"

    def test_operator_credentials(self, realm_env, credentials):
        operator = credentials.resolve_operator()

        assert operator.user == "ops@example.com"
        assert operator.password == "hunter2"
        assert "hunter2" not in repr(operator)

    def test_missing_source_token(self, realm_env, credentials, monkeypatch):
        monkeypatch.delenv("SANDBOXER_GIT_TOKEN")

        with pytest.raises(MissingCredential, match="git/token"):
            credentials.resolve_source_token()

    def test_list_realms_marks_active(self, realm_env, settings, monkeypatch):
        settings.credentials_file.parent.mkdir(parents=True)
        settings.credentials_file.write_text(
            yaml.dump({"realms": {"acme": {"id": "bcxx", "client": "c", "secret": "s"}}})
        )
        resolver = CredentialResolver(
            SecretResolver(SecretConfig(credentials_file=settings.credentials_file))
        )

        realms = resolver.list_realms(active_name="arvato")

        by_name = {r.name: r for r in realms}
        assert by_name["arvato"].id == "zzzz"
        assert by_name["arvato"].active is True
        assert by_name["acme"].id == "bcxx"
        assert by_name["acme"].active is False

    def test_list_realms_ignores_client_keys(self, realm_env, credentials):
        names = [r.name for r in credentials.list_realms()]

        assert "arvato_client" not in names
        assert "arvato" in names
