"""
Application settings using Pydantic.

Provides environment-based configuration loading with SANDBOXER_ prefix.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


def _default_state_dir() -> Path:
    return Path.home() / ".sandboxer"


class Settings(BaseSettings):
    """Application settings."""

    # Local state
    state_dir: Path = _default_state_dir()
    default_realm: str = "default"

    # Remote sandbox tooling
    sandbox_cli: str = "sfcc-ci"

    # Source repositories (the token is embedded at clone time)
    code_repo_url: str = "https://github.com/SalesforceCommerceCloud/storefront-reference-architecture.git"
    data_repo_url: str = "https://github.com/SalesforceCommerceCloud/storefrontdata.git"
    repo_branch: str | None = None
    git_binary: str = "git"

    # Code build
    code_install_command: list[str] = ["npm", "install"]
    code_asset_commands: list[list[str]] = [
        ["npm", "run", "compile:js"],
        ["npm", "run", "compile:scss"],
        ["npm", "run", "compile:fonts"],
    ]
    cartridge_dir: str = "cartridges"
    code_version: str = "version1"

    # Demo data build
    data_package_command: list[str] = ["zip", "-r", "demo_data_sfra.zip", "demo_data_sfra"]
    data_archive: str = "demo_data_sfra.zip"

    # Remote jobs
    reindex_job: str = "Reindex"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "SANDBOXER_"
        # credential keys share the prefix and are read by the secret backends
        extra = "ignore"

    @property
    def context_file(self) -> Path:
        return self.state_dir / "context"

    @property
    def credentials_file(self) -> Path:
        return self.state_dir / "credentials.yaml"

    @property
    def log_dir(self) -> Path:
        return self.state_dir / "logs"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
