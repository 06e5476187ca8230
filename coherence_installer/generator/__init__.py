"""Coherence generator -- decides and writes what an installer run produces.

Quick usage::

    from coherence_installer.generator import plan_main_migration, render_migration

    plan, next_timestamp = plan_main_migration(config)
    body = render_migration(plan, config.repo)
"""

from coherence_installer.generator.boilerplate import BoilerplateGenerator
from coherence_installer.generator.config_patcher import (
    CONFIG_MARKER_END,
    CONFIG_MARKER_START,
    PatchOutcome,
    PatchResult,
    build_config_block,
    patch_config,
)
from coherence_installer.generator.migrations import (
    MigrationPlan,
    MigrationVerb,
    plan_invitation_migration,
    plan_main_migration,
    plan_remember_migration,
    render_migration,
)
from coherence_installer.generator.model_probe import (
    ModelProbe,
    SourceModelProbe,
    StaticModelProbe,
)
from coherence_installer.generator.templates import TemplateRenderer

__all__ = [
    "BoilerplateGenerator",
    "CONFIG_MARKER_END",
    "CONFIG_MARKER_START",
    "MigrationPlan",
    "MigrationVerb",
    "ModelProbe",
    "PatchOutcome",
    "PatchResult",
    "SourceModelProbe",
    "StaticModelProbe",
    "TemplateRenderer",
    "build_config_block",
    "patch_config",
    "plan_invitation_migration",
    "plan_main_migration",
    "plan_remember_migration",
    "render_migration",
]
