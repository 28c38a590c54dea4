"""
Build stages: fetch a source tree, run its build steps, package the output.

A ``BuildRecipe`` describes one source repository and the commands that turn
it into a deployable artifact. Fetcher, builder and packager are capability
interfaces so the orchestrator can be exercised with fakes.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Sequence
from urllib.parse import urlsplit, urlunsplit

import structlog

from sandboxer.config.settings import Settings
from sandboxer.core.errors import BuildError, FetchError, PackageError
from sandboxer.runner import CommandRunner

logger = structlog.get_logger()


@dataclass(frozen=True)
class BuildStep:
    """One build command run inside the fetched tree."""

    name: str
    command: tuple[str, ...]


@dataclass(frozen=True)
class BuildRecipe:
    """Source repository plus the steps that build it."""

    name: str
    repo_url: str
    steps: tuple[BuildStep, ...] = field(default_factory=tuple)
    branch: str | None = None


def _step_name(command: Sequence[str]) -> str:
    # "npm run compile:js" -> "compile:js"; "npm install" -> "install"
    return command[-1] if len(command) > 1 else command[0]


def code_recipe(settings: Settings) -> BuildRecipe:
    """Dependency installation followed by the asset compilation steps."""
    commands = [settings.code_install_command, *settings.code_asset_commands]
    return BuildRecipe(
        name="code",
        repo_url=settings.code_repo_url,
        steps=tuple(BuildStep(_step_name(c), tuple(c)) for c in commands),
        branch=settings.repo_branch,
    )


def data_recipe(settings: Settings) -> BuildRecipe:
    """A single packaging command producing the demo data archive."""
    return BuildRecipe(
        name="data",
        repo_url=settings.data_repo_url,
        steps=(BuildStep("package", tuple(settings.data_package_command)),),
        branch=settings.repo_branch,
    )


def embed_token(url: str, token: str) -> str:
    """Embed ``token`` as the user part of an https clone URL."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, f"{token}@{host}", parts.path, parts.query, parts.fragment))


class SourceFetcher(Protocol):
    def fetch(self, recipe: BuildRecipe, dest: Path) -> Path:
        """Clone ``recipe.repo_url`` into ``dest`` and return the tree."""
        ...


class AssetBuilder(Protocol):
    def build(self, recipe: BuildRecipe, tree: Path) -> None:
        """Run every step of ``recipe`` in order inside ``tree``."""
        ...


class Packager(Protocol):
    def package_code(self, tree: Path, version: str) -> Path: ...

    def locate_archive(self, tree: Path, name: str) -> Path: ...


class GitSourceFetcher:
    """Shallow-clones repositories with an embedded token."""

    def __init__(self, runner: CommandRunner, token: str, git_binary: str = "git"):
        self._runner = runner
        self._token = token
        self._git = git_binary
        runner.add_secret(token)

    def fetch(self, recipe: BuildRecipe, dest: Path) -> Path:
        args = [self._git, "clone", "--depth", "1"]
        if recipe.branch:
            args.extend(["--branch", recipe.branch])
        args.extend([embed_token(recipe.repo_url, self._token), str(dest)])

        result = self._runner.run(args)
        if not result.ok:
            raise FetchError(
                f"Cloning {recipe.repo_url} failed with exit code {result.returncode}",
                {"repository": recipe.repo_url},
            )
        logger.debug("source_fetched", recipe=recipe.name, dest=str(dest))
        return dest


class CommandAssetBuilder:
    """Runs build steps as local commands, output to the run log."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def build(self, recipe: BuildRecipe, tree: Path) -> None:
        for step in recipe.steps:
            self._runner.section(f"{recipe.name}: {step.name}")
            result = self._runner.run(step.command, cwd=tree)
            if not result.ok:
                raise BuildError(
                    f"Build step '{step.name}' exited with code {result.returncode}",
                    {"step": step.name, "recipe": recipe.name},
                )
            logger.debug("build_step_finished", recipe=recipe.name, step=step.name)


class ArchivePackager:
    """Turns build output into zip archives the sandbox accepts."""

    def __init__(self, cartridge_dir: str = "cartridges"):
        self.cartridge_dir = cartridge_dir

    def package_code(self, tree: Path, version: str) -> Path:
        """Rename the cartridge directory to ``version`` and zip it."""
        source = tree / self.cartridge_dir
        if not source.is_dir():
            raise PackageError(
                f"Build output '{self.cartridge_dir}' not found",
                {"tree": str(tree)},
            )

        unit = tree / version
        if unit.exists():
            shutil.rmtree(unit)
        source.rename(unit)

        archive = shutil.make_archive(str(unit), "zip", root_dir=tree, base_dir=version)
        return Path(archive)

    def locate_archive(self, tree: Path, name: str) -> Path:
        archive = tree / name
        if not archive.is_file():
            raise PackageError(f"Archive '{name}' was not produced", {"tree": str(tree)})
        return archive
