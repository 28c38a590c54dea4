"""
sandboxer command line entry point.

Usage:
    sandboxer --realms                 List realms found in the credential sources
    sandboxer --realm NAME             Select the active realm
    sandboxer --sandboxes              List sandboxes
    sandboxer --sandbox ALIAS|N        Select the active sandbox (N -> <realmId>-00N)
    sandboxer --info                   Show the active sandbox
    sandboxer --create                 Create a sandbox and select it
    sandboxer --deploy                 Deploy the storefront and demo data
    sandboxer --create-deploy          Create a sandbox, then deploy to it
    sandboxer --ide DIR                Scaffold a local IDE workspace in DIR

Every mutating action asks for confirmation unless --yes is given.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

import structlog

from sandboxer.cli import ux
from sandboxer.config.secrets import SecretConfig, SecretResolver
from sandboxer.config.settings import Settings, get_settings
from sandboxer.context import ContextStore
from sandboxer.core.errors import ExitCode, main_with_error_handling
from sandboxer.credentials import CredentialResolver
from sandboxer.logging import configure_logging
from sandboxer.operations import (
    Confirm,
    create_sandbox,
    describe_sandbox,
    list_sandboxes,
    require_confirmation,
    select_realm,
    select_sandbox,
)
from sandboxer.pipeline.orchestrator import create_orchestrator, new_log_path
from sandboxer.runner import CommandRunner
from sandboxer.sandbox.client import SandboxCliClient, SandboxClient
from sandboxer.session import authenticate, build_operation_context

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sandboxer",
        description="Manage realm sandboxes and deploy the reference storefront",
    )
    parser.add_argument("--realms", action="store_true", help="List realms")
    parser.add_argument("--realm", metavar="NAME", help="Select the active realm")
    parser.add_argument("--sandboxes", action="store_true", help="List sandboxes")
    parser.add_argument("--sandbox", metavar="ALIAS", help="Select the active sandbox (alias or index)")
    parser.add_argument("--info", action="store_true", help="Show the active sandbox")

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--create", action="store_true", help="Create a sandbox")
    actions.add_argument("--deploy", action="store_true", help="Deploy storefront code and demo data")
    actions.add_argument("--create-deploy", action="store_true", help="Create a sandbox and deploy to it")
    actions.add_argument("--ide", metavar="DIR", help="Scaffold a local IDE workspace")

    parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to every confirmation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose diagnostic logging")
    return parser


class Commands:
    """Runs the actions selected on the command line."""

    def __init__(self, settings: Settings, confirm: Confirm):
        self.settings = settings
        self.confirm = confirm
        self.store = ContextStore(settings.context_file, settings.default_realm)
        self.credentials = CredentialResolver(
            SecretResolver(SecretConfig(credentials_file=settings.credentials_file))
        )

    def list_realms(self) -> int:
        active = self.store.load()
        realms = self.credentials.list_realms(active.realm_name)
        if not realms:
            ux.warning("No realms configured")
            return ExitCode.SUCCESS
        rows = [["*" if r.active else "", r.name, r.id] for r in realms]
        ux.print_table("Realms", ["", "Name", "Realm ID"], rows)
        return ExitCode.SUCCESS

    def set_realm(self, name: str) -> None:
        require_confirmation(self.confirm, f"Select realm '{name}'?")
        realm = select_realm(self.store, self.credentials, name)
        ux.success(f"Active realm: {realm.name} ({realm.id})")

    def set_sandbox(self, value: str) -> None:
        require_confirmation(self.confirm, f"Select sandbox '{value}'?")
        ref = select_sandbox(self.store, self.credentials, value)
        ux.success(f"Active sandbox: {ref.alias}")

    def list_sandboxes(self) -> int:
        context = build_operation_context(self.store.load(), self.credentials, self.settings)
        client = SandboxCliClient(self._session_runner("list"), self.settings.sandbox_cli)
        sandboxes = list_sandboxes(context, client)
        rows = [
            ["*" if s.alias == context.sandbox_alias else "", s.alias, s.realm, s.instance, s.created_by or ""]
            for s in sandboxes
        ]
        ux.print_table("Sandboxes", ["", "Alias", "Realm", "Instance", "Created by"], rows)
        return ExitCode.SUCCESS

    def show_info(self) -> int:
        context = build_operation_context(
            self.store.load(), self.credentials, self.settings, require_sandbox=True
        )
        client = SandboxCliClient(self._session_runner("info"), self.settings.sandbox_cli)
        authenticate(client, context)
        self._show_sandbox(client, context.require_sandbox())
        return ExitCode.SUCCESS

    def create(self, then_deploy: bool = False) -> int:
        context = build_operation_context(
            self.store.load(), self.credentials, self.settings, require_source=then_deploy
        )
        question = f"Create a sandbox in realm '{context.realm.name}'"
        require_confirmation(self.confirm, question + (" and deploy to it?" if then_deploy else "?"))

        if not then_deploy:
            client = SandboxCliClient(self._session_runner("create"), self.settings.sandbox_cli)
            ref = create_sandbox(context, client, self.store)
            ux.success(f"Created sandbox {ref.alias}")
            self._show_sandbox(client, ref.alias)
            return ExitCode.SUCCESS

        orchestrator = create_orchestrator(context, "create-deploy", on_stage=ux.stage_done)
        ref = create_sandbox(context, orchestrator.client, self.store)
        ux.success(f"Created sandbox {ref.alias}")
        self._show_sandbox(orchestrator.client, ref.alias)
        orchestrator.context = context.with_sandbox(ref.alias)
        ux.show_run(orchestrator.deploy())
        return ExitCode.SUCCESS

    def deploy(self) -> int:
        context = build_operation_context(
            self.store.load(),
            self.credentials,
            self.settings,
            require_sandbox=True,
            require_source=True,
        )
        require_confirmation(self.confirm, f"Deploy storefront and demo data to {context.sandbox_alias}?")
        orchestrator = create_orchestrator(context, "deploy", on_stage=ux.stage_done)
        ux.header(f"Deploying to {context.sandbox_alias}")
        ux.info(f"Tool output is written to {orchestrator.log_path}")
        ux.show_run(orchestrator.deploy())
        return ExitCode.SUCCESS

    def setup_ide(self, target: str) -> int:
        context = build_operation_context(
            self.store.load(),
            self.credentials,
            self.settings,
            require_sandbox=True,
            require_source=True,
        )
        path = Path(target).expanduser().resolve()
        require_confirmation(self.confirm, f"Set up an IDE workspace for {context.sandbox_alias} in {path}?")
        orchestrator = create_orchestrator(context, "ide-setup", workdir=path, on_stage=ux.stage_done)
        ux.header(f"IDE workspace for {context.sandbox_alias}")
        ux.show_run(orchestrator.setup_ide(path))
        return ExitCode.SUCCESS

    def _session_runner(self, kind: str) -> CommandRunner:
        return CommandRunner(new_log_path(self.settings.log_dir, kind))

    def _show_sandbox(self, client: SandboxClient, alias: str) -> None:
        details = describe_sandbox(client, alias)
        if details is None:
            ux.warning(f"Could not look up details for {alias}")
            return
        ux.print_table(
            f"Sandbox {alias}",
            ["Host", "Management URL", "State"],
            [[details.host_name or "", details.management_url or "", details.state or ""]],
        )


@main_with_error_handling()
def run(args: argparse.Namespace, settings: Settings, confirm: Confirm) -> int:
    commands = Commands(settings, confirm)

    if args.realms:
        return commands.list_realms()
    if args.realm:
        commands.set_realm(args.realm)
    if args.sandbox:
        commands.set_sandbox(args.sandbox)
    if args.sandboxes:
        return commands.list_sandboxes()
    if args.info:
        commands.show_info()

    if args.create:
        return commands.create()
    if args.create_deploy:
        return commands.create(then_deploy=True)
    if args.deploy:
        return commands.deploy()
    if args.ide:
        return commands.setup_ide(args.ide)
    return ExitCode.SUCCESS


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        json=not args.verbose,
    )

    selected = [args.realms, args.realm, args.sandboxes, args.sandbox, args.info,
                args.create, args.deploy, args.create_deploy, args.ide]
    if not any(selected):
        parser.print_help()
        return ExitCode.SUCCESS

    confirm: Confirm = (lambda _message: True) if args.yes else ux.confirm
    return int(run(args, settings or get_settings(), confirm))


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
