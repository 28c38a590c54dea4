"""
Active realm/sandbox context persisted between invocations.

The context file is human-editable text with one ``key value`` pair per line::

    realm arvato
    sandbox zzzz-003
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

import structlog

logger = structlog.get_logger()

REALM_KEY = "realm"
SANDBOX_KEY = "sandbox"


@dataclass(frozen=True)
class ActiveContext:
    """The currently selected realm and sandbox alias."""

    realm_name: str
    sandbox_alias: str | None = None


def format_sandbox_alias(realm_id: str, index: int) -> str:
    """Format a numeric sandbox index as ``<realmId>-<3-digit index>``."""
    if index < 0:
        raise ValueError(f"Sandbox index must not be negative: {index}")
    return f"{realm_id}-{index:03d}"


def resolve_sandbox_alias(value: str | int, realm_id: str) -> str:
    """Resolve an explicit alias or a numeric index against ``realm_id``."""
    if isinstance(value, int):
        return format_sandbox_alias(realm_id, value)
    text = value.strip()
    if text.isdigit():
        return format_sandbox_alias(realm_id, int(text))
    return text


class ContextStore:
    """Reads and writes the active context file."""

    def __init__(self, path: Path, default_realm: str):
        self.path = path
        self.default_realm = default_realm

    def load(self) -> ActiveContext:
        if not self.path.exists():
            return ActiveContext(realm_name=self.default_realm)

        values: dict[str, str] = {}
        for line in self.path.read_text().splitlines():
            key, _, value = line.strip().partition(" ")
            if key and value.strip():
                values[key] = value.strip()

        return ActiveContext(
            realm_name=values.get(REALM_KEY, self.default_realm),
            sandbox_alias=values.get(SANDBOX_KEY),
        )

    def save(self, context: ActiveContext) -> None:
        lines = [f"{REALM_KEY} {context.realm_name}"]
        if context.sandbox_alias:
            lines.append(f"{SANDBOX_KEY} {context.sandbox_alias}")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("\n".join(lines) + "\n")

    def set_realm(self, name: str) -> ActiveContext:
        """Select a realm. The sandbox selection is left untouched."""
        context = replace(self.load(), realm_name=name)
        self.save(context)
        logger.info("realm_selected", realm=name)
        return context

    def set_sandbox(self, alias: str) -> ActiveContext:
        context = replace(self.load(), sandbox_alias=alias)
        self.save(context)
        logger.info("sandbox_selected", sandbox=alias)
        return context
