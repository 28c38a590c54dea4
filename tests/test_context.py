"""Tests for context.py.

Tests for the active realm/sandbox context file and alias formatting.
"""

import pytest
from sandboxer.context import (
    ActiveContext,
    ContextStore,
    format_sandbox_alias,
    resolve_sandbox_alias,
)


class TestFormatSandboxAlias:
    """Numeric indexes become <realmId>-<3-digit index>."""

    @pytest.mark.parametrize(
        "index,expected",
        [(3, "zzzz-003"), (42, "zzzz-042"), (123, "zzzz-123"), (0, "zzzz-000")],
    )
    def test_zero_padding(self, index, expected):
        assert format_sandbox_alias("zzzz", index) == expected

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            format_sandbox_alias("zzzz", -1)


class TestResolveSandboxAlias:
    def test_numeric_string(self):
        assert resolve_sandbox_alias("7", "abcd") == "abcd-007"

    def test_integer(self):
        assert resolve_sandbox_alias(15, "abcd") == "abcd-015"

    def test_explicit_alias_kept(self):
        assert resolve_sandbox_alias("bcxx-002", "abcd") == "bcxx-002"

    def test_whitespace_trimmed(self):
        assert resolve_sandbox_alias(" 4 ", "abcd") == "abcd-004"


class TestContextStore:
    """Tests for ContextStore."""

    def test_load_defaults_when_missing(self, tmp_path):
        store = ContextStore(tmp_path / "context", default_realm="arvato")

        context = store.load()

        assert context == ActiveContext(realm_name="arvato", sandbox_alias=None)

    def test_save_writes_two_lines(self, tmp_path):
        path = tmp_path / "state" / "context"
        store = ContextStore(path, default_realm="arvato")

        store.save(ActiveContext(realm_name="arvato", sandbox_alias="zzzz-003"))

        assert path.read_text() == "realm arvato\nsandbox zzzz-003\n"

    def test_save_without_sandbox(self, tmp_path):
        path = tmp_path / "context"
        store = ContextStore(path, default_realm="arvato")

        store.save(ActiveContext(realm_name="other"))

        assert path.read_text() == "realm other\n"

    def test_load_hand_edited_file(self, tmp_path):
        path = tmp_path / "context"
        path.write_text("  realm   acme \n\nsandbox acme-010\nunknown line\n")
        store = ContextStore(path, default_realm="arvato")

        context = store.load()

        assert context.realm_name == "acme"
        assert context.sandbox_alias == "acme-010"

    def test_set_sandbox_keeps_realm(self, tmp_path):
        store = ContextStore(tmp_path / "context", default_realm="arvato")

        store.set_realm("acme")
        context = store.set_sandbox("acme-001")

        assert context == ActiveContext(realm_name="acme", sandbox_alias="acme-001")
        assert store.load() == context

    def test_changing_realm_keeps_stale_sandbox(self, tmp_path):
        """Selecting another realm leaves the old sandbox alias selected."""
        store = ContextStore(tmp_path / "context", default_realm="arvato")
        store.set_sandbox("zzzz-003")

        context = store.set_realm("acme")

        assert context.realm_name == "acme"
        assert context.sandbox_alias == "zzzz-003"
        assert store.load().sandbox_alias == "zzzz-003"
