"""
Deployment pipeline.

- stages: fetch / build / package building blocks
- run: state machine types and timing
- orchestrator: sequences the stages against a sandbox
"""

from sandboxer.pipeline.orchestrator import (
    DeploymentOrchestrator,
    create_orchestrator,
    write_workspace_config,
)
from sandboxer.pipeline.run import (
    DEPLOY_STAGES,
    DeploymentRun,
    PipelineState,
    StageRecord,
    format_elapsed,
)
from sandboxer.pipeline.stages import (
    ArchivePackager,
    BuildRecipe,
    BuildStep,
    CommandAssetBuilder,
    GitSourceFetcher,
    code_recipe,
    data_recipe,
)

__all__ = [
    "DeploymentOrchestrator",
    "create_orchestrator",
    "write_workspace_config",
    "DeploymentRun",
    "PipelineState",
    "StageRecord",
    "DEPLOY_STAGES",
    "format_elapsed",
    "BuildRecipe",
    "BuildStep",
    "GitSourceFetcher",
    "CommandAssetBuilder",
    "ArchivePackager",
    "code_recipe",
    "data_recipe",
]
