"""
Deployment orchestration.

Runs the storefront code and demo data through fetch, build, package, upload,
activation, import and reindex as an explicit state machine. Any stage error
moves the run to FAILED and propagates; nothing is retried and no remote
state is rolled back.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator

import structlog

from sandboxer.core.errors import RemoteOperationError, SandboxerError
from sandboxer.pipeline.run import DeploymentRun, PipelineState, StageRecord
from sandboxer.pipeline.stages import (
    ArchivePackager,
    AssetBuilder,
    CommandAssetBuilder,
    GitSourceFetcher,
    Packager,
    SourceFetcher,
    code_recipe,
    data_recipe,
)
from sandboxer.runner import CommandRunner
from sandboxer.sandbox.client import SandboxCliClient, SandboxClient
from sandboxer.session import OperationContext, authenticate

logger = structlog.get_logger()

StageCallback = Callable[[StageRecord], None]

WORKSPACE_CONFIG = "dw.json"


class DeploymentOrchestrator:
    """Sequences build stages and sandbox calls for one run."""

    def __init__(
        self,
        context: OperationContext,
        client: SandboxClient,
        fetcher: SourceFetcher,
        builder: AssetBuilder,
        packager: Packager,
        runner: CommandRunner,
        workdir: Path | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_stage: StageCallback | None = None,
    ) -> None:
        self.context = context
        self.client = client
        self.fetcher = fetcher
        self.builder = builder
        self.packager = packager
        self.runner = runner
        self.workdir = workdir
        self._clock = clock
        self._on_stage = on_stage
        self.last_run: DeploymentRun | None = None

    @property
    def log_path(self) -> Path:
        return self.runner.log_path

    def deploy(self) -> DeploymentRun:
        """Deploy storefront code and demo data to the active sandbox."""
        alias = self.context.require_sandbox()
        settings = self.context.settings
        code, data = code_recipe(settings), data_recipe(settings)

        if self.workdir is None:
            self.workdir = Path(tempfile.mkdtemp(prefix="sandboxer-"))
        run = self._start("deploy", alias)

        with self._stage(run, PipelineState.FETCHING_CODE):
            code_tree = self.fetcher.fetch(code, self.workdir / "code")
        with self._stage(run, PipelineState.BUILDING_CODE):
            self.builder.build(code, code_tree)
        with self._stage(run, PipelineState.PACKAGING_CODE):
            code_archive = self.packager.package_code(code_tree, settings.code_version)
        with self._stage(run, PipelineState.UPLOADING_CODE):
            authenticate(self.client, self.context)
            self.client.deploy_code(code_archive, alias)
        with self._stage(run, PipelineState.ACTIVATING_CODE):
            self._activate(settings.code_version, alias)

        with self._stage(run, PipelineState.FETCHING_DATA):
            data_tree = self.fetcher.fetch(data, self.workdir / "data")
        with self._stage(run, PipelineState.BUILDING_DATA):
            self.builder.build(data, data_tree)
            data_archive = self.packager.locate_archive(data_tree, settings.data_archive)
        with self._stage(run, PipelineState.IMPORTING_DATA):
            authenticate(self.client, self.context)
            self.client.upload_data(data_archive, alias)
            self.client.import_data(data_archive, alias)
        with self._stage(run, PipelineState.REINDEXING):
            self.client.run_job(settings.reindex_job, alias)

        return self._finish(run, cleanup=True)

    def setup_ide(self, target: Path) -> DeploymentRun:
        """Clone and build the storefront into ``target`` and write its dw.json."""
        alias = self.context.require_sandbox()
        settings = self.context.settings
        code = code_recipe(settings)

        run = self._start("ide-setup", alias)

        with self._stage(run, PipelineState.FETCHING_CODE):
            tree = self.fetcher.fetch(code, target)
        with self._stage(run, PipelineState.BUILDING_CODE):
            self.builder.build(code, tree)
        with self._stage(run, PipelineState.WRITING_WORKSPACE):
            authenticate(self.client, self.context)
            info = self.client.get_sandbox(alias)
            if not info.host_name:
                raise RemoteOperationError(f"Sandbox {alias} has no host name", {"sandbox": alias})
            write_workspace_config(
                tree / WORKSPACE_CONFIG,
                host_name=info.host_name,
                user=self.context.operator.user,
                password=self.context.operator.password,
                code_version=settings.code_version,
            )

        return self._finish(run, cleanup=False)

    def _activate(self, version: str, alias: str) -> bool:
        """Activate ``version`` unless it already is the active one."""
        versions = self.client.list_code_versions(alias)
        if any(v.id == version and v.active for v in versions):
            logger.info("code_version_already_active", version=version, sandbox=alias)
            return False

        self.client.activate_code(version, alias)
        logger.info("code_version_activated", version=version, sandbox=alias)
        return True

    def _start(self, kind: str, alias: str) -> DeploymentRun:
        run = DeploymentRun(kind=kind, log_path=self.log_path)
        self.last_run = run
        self.runner.section(f"{kind} {alias} (realm {self.context.realm.name})")
        logger.info("run_started", kind=kind, sandbox=alias, log_path=str(self.log_path))
        return run

    def _finish(self, run: DeploymentRun, cleanup: bool) -> DeploymentRun:
        run.complete()
        logger.info(
            "run_finished",
            kind=run.kind,
            stages=len(run.stages),
            log_path=str(self.log_path),
        )
        if cleanup:
            shutil.rmtree(self.workdir, ignore_errors=True)
        return run

    @contextmanager
    def _stage(self, run: DeploymentRun, state: PipelineState) -> Iterator[StageRecord]:
        record = run.enter(state, self._clock())
        self.runner.section(record.title)
        try:
            yield record
        except Exception as e:
            run.fail(e, self._clock())
            if isinstance(e, SandboxerError):
                e.details.setdefault("stage", state.value)
                e.details["log_path"] = str(self.log_path)
            self.runner.write(f"stage {state.value} failed: {e}")
            logger.error(
                "stage_failed",
                stage=state.value,
                error_type=type(e).__name__,
                error=str(e),
                log_path=str(self.log_path),
            )
            raise
        record.finished_at = self._clock()
        record.succeeded = True
        logger.debug("stage_finished", stage=state.value, elapsed=record.elapsed)
        if self._on_stage:
            self._on_stage(record)


def write_workspace_config(
    path: Path, *, host_name: str, user: str, password: str, code_version: str
) -> Path:
    """Write the dw.json the storefront IDE tooling reads."""
    payload = {
        "hostname": host_name,
        "username": user,
        "password": password,
        "code-version": code_version,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")
    os.chmod(path, 0o600)
    return path


def new_log_path(log_dir: Path, kind: str) -> Path:
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return log_dir / f"{kind}-{stamp}.log"


def create_orchestrator(
    context: OperationContext,
    kind: str,
    *,
    workdir: Path | None = None,
    on_stage: StageCallback | None = None,
) -> DeploymentOrchestrator:
    """Wire the real tool-backed stages for one run."""
    settings = context.settings
    runner = CommandRunner(new_log_path(settings.log_dir, kind))
    return DeploymentOrchestrator(
        context,
        SandboxCliClient(runner, settings.sandbox_cli),
        GitSourceFetcher(runner, context.require_source_token(), settings.git_binary),
        CommandAssetBuilder(runner),
        ArchivePackager(settings.cartridge_dir),
        runner,
        workdir,
        on_stage=on_stage,
    )
