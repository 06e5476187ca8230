"""Coherence installer pipeline orchestrator.

Threads one :class:`ResolvedConfig` through an ordered list of stages:

 1. probe_model           -- does the user model already exist?
 2. config_block          -- render the ``config :coherence`` block
 3. patch_config          -- append the block to config/config.exs
 4. main_migration        -- create or alter the user table
 5. model                 -- scaffold a user model if none exists
 6. invitation_migration  -- ``invitations`` table (invitable)
 7. remember_migration    -- ``rememberables`` table (rememberable)
 8. web / views / templates / mailer / controllers -- boilerplate
 9. touch_config          -- bump config.exs so Mix recompiles it
10. instructions          -- collect follow-up instructions

Every stage takes the configuration and returns an updated copy; a stage
whose switch is off is skipped and the configuration passes through
unchanged.  The first failing stage stops the run.  Files written by earlier
stages are left in place.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, Field
from rich.panel import Panel
from rich.prompt import Confirm

from coherence_installer.catalog import Capability
from coherence_installer.config import InstallerSettings
from coherence_installer.errors import StageError
from coherence_installer.generator.boilerplate import BoilerplateGenerator, needs_model_scaffold
from coherence_installer.generator.config_patcher import (
    PatchResult,
    build_config_block,
    patch_config,
)
from coherence_installer.generator.instructions import config_instructions, final_instructions
from coherence_installer.generator.migrations import (
    MigrationPlan,
    migrations_dir,
    plan_invitation_migration,
    plan_main_migration,
    plan_remember_migration,
    render_migration,
)
from coherence_installer.generator.model_probe import ModelProbe, SourceModelProbe
from coherence_installer.generator.templates import TemplateRenderer
from coherence_installer.options import Environment, RequestedOption, ResolvedConfig, build, resolve
from coherence_installer.utils import (
    console,
    format_duration,
    print_created,
    print_error,
    print_info,
    print_kept,
    print_success,
    print_summary_table,
    print_warning,
    relative_to_root,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Migration sink
# ---------------------------------------------------------------------------


class MigrationSink(Protocol):
    """Destination for rendered migration files."""

    def create_file(self, path: Path, content: str) -> None: ...


class FileMigrationSink:
    """Writes migrations to disk, refusing to overwrite an existing file."""

    def create_file(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("x", encoding="utf-8") as fh:
            fh.write(content)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class InstallReport(BaseModel):
    """Result of one installer run."""

    success: bool = False
    config: Optional[ResolvedConfig] = None
    migrations: list[MigrationPlan] = Field(default_factory=list)
    written: list[Path] = Field(default_factory=list)
    kept: list[Path] = Field(
        default_factory=list, description="Existing files the user chose not to overwrite"
    )
    config_patch: Optional[PatchResult] = None
    stages_completed: list[str] = Field(default_factory=list)
    stages_skipped: list[str] = Field(default_factory=list)
    failed_stage: Optional[str] = None
    error: Optional[str] = None

    @property
    def instructions(self) -> str:
        return self.config.instructions if self.config is not None else ""


# ---------------------------------------------------------------------------
# Configuration entry point
# ---------------------------------------------------------------------------


def prepare_config(
    requested: Sequence[RequestedOption],
    settings: InstallerSettings,
    timestamp: int | None = None,
) -> ResolvedConfig:
    """Resolve *requested* options and build the run configuration.

    Raises the validation errors of :func:`resolve` and :func:`build`; no
    file is touched.
    """
    capabilities, control = resolve(requested)
    environment = Environment(
        base=settings.base_namespace(),
        project_root=settings.project_root,
        timestamp=timestamp,
    )
    return build(capabilities, control, environment)


# ---------------------------------------------------------------------------
# Installer
# ---------------------------------------------------------------------------

StagePredicate = Callable[[ResolvedConfig], bool]


def _always(config: ResolvedConfig) -> bool:
    return True


def _boilerplate(switch: str) -> StagePredicate:
    def predicate(config: ResolvedConfig) -> bool:
        return config.switches.boilerplate and getattr(config.switches, switch)

    return predicate


def _migration_for(capability: Capability) -> StagePredicate:
    def predicate(config: ResolvedConfig) -> bool:
        return config.has(capability) and _boilerplate("migrations")(config)

    return predicate


class Installer:
    """Coherence installer pipeline.

    Attributes:
        settings: Host project layout.
        probe: Model existence probe.
        renderer: Jinja2 boilerplate renderer.
        sink: Destination for migration files.
        confirm: Asked before appending a second config block and before
            replacing an existing boilerplate file.
    """

    def __init__(
        self,
        settings: InstallerSettings,
        *,
        probe: ModelProbe | None = None,
        renderer: TemplateRenderer | None = None,
        sink: MigrationSink | None = None,
        confirm: Callable[[str], bool] | None = None,
    ) -> None:
        self.settings = settings
        self.probe = probe or SourceModelProbe(settings.build_path)
        self.renderer = renderer or TemplateRenderer(settings.template_dir)
        self.sink = sink or FileMigrationSink()
        if confirm is None:
            confirm = _assume_yes if settings.assume_yes else _ask
        self.confirm = confirm
        self.boilerplate = BoilerplateGenerator(self.renderer, settings.web_path, confirm)
        self.report = InstallReport()

    _STAGES: list[tuple[str, str, StagePredicate]] = [
        ("probe_model", "stage_probe_model", _always),
        ("config_block", "stage_config_block", _always),
        ("patch_config", "stage_patch_config", lambda c: c.switches.config),
        ("main_migration", "stage_main_migration", _boilerplate("migrations")),
        ("model", "stage_model", _boilerplate("models")),
        ("invitation_migration", "stage_invitation_migration", _migration_for(Capability.INVITABLE)),
        ("remember_migration", "stage_remember_migration", _migration_for(Capability.REMEMBERABLE)),
        ("web", "stage_web", _boilerplate("web")),
        ("views", "stage_views", _boilerplate("views")),
        ("templates", "stage_templates", _boilerplate("templates")),
        ("mailer", "stage_mailer", lambda c: c.use_email and _boilerplate("emails")(c)),
        ("controllers", "stage_controllers", _boilerplate("controllers")),
        ("touch_config", "stage_touch_config", _always),
        ("instructions", "stage_instructions", _always),
    ]

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, config: ResolvedConfig) -> InstallReport:
        """Execute every stage in order.

        Returns:
            The :class:`InstallReport`.  On failure ``success`` is ``False``
            and ``failed_stage`` / ``error`` name the stage that stopped
            the run.
        """
        started = time.monotonic()
        self.report = InstallReport(config=config)
        self.boilerplate.skipped.clear()

        console.print(
            Panel(
                f"Module : {config.base}\n"
                f"Schema : {config.user_schema} ({config.user_table_name})\n"
                f"Options: {', '.join(config.opts)}",
                title="[bold]Coherence Install[/bold]",
                border_style="bright_cyan",
            )
        )

        for name, method_name, enabled in self._STAGES:
            if not enabled(config):
                logger.debug("Skipping stage %s", name)
                self.report.stages_skipped.append(name)
                continue

            logger.info("Running stage %s", name)
            try:
                config = await getattr(self, method_name)(config)
            except StageError as exc:
                self._fail(name, exc)
                break
            except Exception as exc:
                logger.exception("Stage %s failed", name)
                self._fail(name, StageError(name, str(exc)))
                break
            self.report.config = config
            self.report.stages_completed.append(name)
        else:
            self.report.success = True

        self.report.kept = list(self.boilerplate.skipped)
        for path in self.report.kept:
            print_kept(relative_to_root(path, self.settings.project_root))

        self._print_final_summary(time.monotonic() - started)
        return self.report

    def _fail(self, stage: str, exc: StageError) -> None:
        self.report.failed_stage = stage
        self.report.error = str(exc)
        print_error(str(exc))

    # ------------------------------------------------------------------
    # Model probe
    # ------------------------------------------------------------------

    async def stage_probe_model(self, config: ResolvedConfig) -> ResolvedConfig:
        found = await asyncio.to_thread(
            self.probe.exists, config.user_schema, self.settings.models_path
        )
        logger.info("Model %s %s", config.user_schema, "found" if found else "not found")
        return config.model_copy(update={"model_found": found})

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    async def stage_config_block(self, config: ResolvedConfig) -> ResolvedConfig:
        return config.model_copy(update={"config_block": build_config_block(config)})

    async def stage_patch_config(self, config: ResolvedConfig) -> ResolvedConfig:
        result = await asyncio.to_thread(
            patch_config, config.config_block, self.settings.config_path, self.confirm
        )
        self.report.config_patch = result
        if result.applied:
            print_success(result.message)
        else:
            print_warning(result.message)
        return config

    async def stage_touch_config(self, config: ResolvedConfig) -> ResolvedConfig:
        path = self.settings.config_path
        if path.is_file():
            os.utime(path)
        return config

    # ------------------------------------------------------------------
    # Migrations
    # ------------------------------------------------------------------

    async def stage_main_migration(self, config: ResolvedConfig) -> ResolvedConfig:
        plan, timestamp = plan_main_migration(config)
        await self._emit_migration(plan, config)
        return config.model_copy(update={"timestamp": timestamp})

    async def stage_invitation_migration(self, config: ResolvedConfig) -> ResolvedConfig:
        plan, timestamp = plan_invitation_migration(config)
        if plan is not None:
            await self._emit_migration(plan, config)
        return config.model_copy(update={"timestamp": timestamp})

    async def stage_remember_migration(self, config: ResolvedConfig) -> ResolvedConfig:
        plan, timestamp = plan_remember_migration(config)
        if plan is not None:
            await self._emit_migration(plan, config)
        return config.model_copy(update={"timestamp": timestamp})

    async def _emit_migration(self, plan: MigrationPlan, config: ResolvedConfig) -> None:
        path = migrations_dir(config) / plan.filename
        content = render_migration(plan, config.repo)
        await asyncio.to_thread(self.sink.create_file, path, content)
        self.report.migrations.append(plan)
        self._record([path])

    # ------------------------------------------------------------------
    # Boilerplate
    # ------------------------------------------------------------------

    async def stage_model(self, config: ResolvedConfig) -> ResolvedConfig:
        self._record(await self.boilerplate.generate_model(config))
        return config

    async def stage_web(self, config: ResolvedConfig) -> ResolvedConfig:
        self._record(await self.boilerplate.generate_web(config))
        return config

    async def stage_views(self, config: ResolvedConfig) -> ResolvedConfig:
        self._record(await self.boilerplate.generate_views(config))
        return config

    async def stage_templates(self, config: ResolvedConfig) -> ResolvedConfig:
        self._record(await self.boilerplate.generate_templates(config))
        return config

    async def stage_mailer(self, config: ResolvedConfig) -> ResolvedConfig:
        self._record(await self.boilerplate.generate_mailer(config))
        return config

    async def stage_controllers(self, config: ResolvedConfig) -> ResolvedConfig:
        self._record(await self.boilerplate.generate_controllers(config))
        return config

    def _record(self, paths: list[Path]) -> None:
        for path in paths:
            print_created(relative_to_root(path, self.settings.project_root))
        self.report.written.extend(paths)

    # ------------------------------------------------------------------
    # Instructions
    # ------------------------------------------------------------------

    async def stage_instructions(self, config: ResolvedConfig) -> ResolvedConfig:
        switches = config.switches
        model_generated = (
            switches.boilerplate and switches.models and needs_model_scaffold(config)
        )
        config = config.with_instructions(
            config_instructions(config, self.report.config_patch, self.settings.config_file)
        )
        return config.with_instructions(final_instructions(config, model_generated))

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _print_final_summary(self, elapsed: float) -> None:
        report = self.report
        if report.instructions:
            print_info(report.instructions)

        print_summary_table(
            {
                "Options": ", ".join(report.config.opts) if report.config else "-",
                "Migrations": str(len(report.migrations)),
                "Files written": str(len(report.written)),
                "Files kept": str(len(report.kept)),
                "Config patched": "yes" if report.config_patch and report.config_patch.applied else "no",
                "Duration": format_duration(elapsed),
            },
            title="Coherence Install Summary",
        )
        if report.success:
            print_success("Coherence installed.")
        else:
            print_error(f"Install stopped at stage {report.failed_stage}.")


def _ask(question: str) -> bool:
    return Confirm.ask(question, default=False, console=console)


def _assume_yes(question: str) -> bool:
    return True
