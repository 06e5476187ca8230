"""Boilerplate artifact generation.

Decides which model, web, view, template, mailer, and controller files a
resolved configuration needs and renders them through the
:class:`TemplateRenderer`.  The ``select_*`` helpers are pure; the
``generate_*`` coroutines write files and return the written paths;
existing files are kept unless the confirm callback allows replacing them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from coherence_installer.catalog import (
    CONTROLLER_FILES,
    MAILER_FILES,
    TEMPLATE_FILES,
    VIEW_FILES,
    guard_satisfied,
)
from coherence_installer.options.models import ResolvedConfig

from .templates import TemplateRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selection (pure)
# ---------------------------------------------------------------------------


def select_view_files(config: ResolvedConfig) -> list[str]:
    """View modules required by the enabled capabilities, in table order."""
    return [
        filename
        for guard, filename in VIEW_FILES
        if guard_satisfied(guard, config.capabilities, config.use_email)
    ]


def select_template_files(config: ResolvedConfig) -> list[tuple[str, list[str]]]:
    """``(group, [file, ...])`` pairs of ``.html.eex`` templates to generate."""
    return [
        (group, [f"{name}.html.eex" for name in names])
        for group, guard, names in TEMPLATE_FILES
        if guard_satisfied(guard, config.capabilities, config.use_email)
    ]


def select_controller_files(config: ResolvedConfig) -> list[str]:
    """Controller modules required by the enabled capabilities."""
    return [
        filename
        for guard, filename in CONTROLLER_FILES
        if guard_satisfied(guard, config.capabilities, config.use_email)
    ]


def needs_model_scaffold(config: ResolvedConfig) -> bool:
    """A new user model file is generated only when no model exists yet."""
    return config.model_found is False


def build_bindings(config: ResolvedConfig) -> dict[str, Any]:
    """Template variables shared by every boilerplate template."""
    return {
        "base": config.base,
        "repo": config.repo,
        "user_schema": config.user_schema,
        "user_table_name": config.user_table_name,
        "model_name": config.model_name,
        "opts": config.opts,
        "use_email": config.use_email,
    }


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


OVERWRITE_PROMPT = "{path} already exists. Overwrite?"


class BoilerplateGenerator:
    """Renders Coherence boilerplate into the host project's ``web/`` tree.

    A destination that already exists is only replaced when *confirm*
    answers yes; otherwise it is left as is and listed in ``skipped``.
    Without a *confirm* callback existing files are always replaced.
    """

    def __init__(
        self,
        renderer: TemplateRenderer,
        web_path: Path,
        confirm: Callable[[str], bool] | None = None,
    ) -> None:
        self.renderer = renderer
        self.web_path = web_path
        self.confirm = confirm
        self.skipped: list[Path] = []

    async def _copy(
        self,
        template_prefix: str,
        config: ResolvedConfig,
        outputs: Sequence[tuple[str, Path]],
    ) -> list[Path]:
        pending = []
        for source, destination in outputs:
            if await asyncio.to_thread(self._keep_existing, destination):
                logger.info("Keeping existing %s", destination)
                self.skipped.append(destination)
            else:
                pending.append((source, destination))
        return await self.renderer.copy_from(template_prefix, build_bindings(config), pending)

    def _keep_existing(self, destination: Path) -> bool:
        if self.confirm is None or not destination.exists():
            return False
        return not self.confirm(OVERWRITE_PROMPT.format(path=destination))

    async def generate_model(self, config: ResolvedConfig) -> list[Path]:
        """Generate ``web/models/coherence/<model>.ex`` when no model exists."""
        if not needs_model_scaffold(config):
            return []
        destination = self.web_path / "models" / "coherence" / f"{config.model_name}.ex"
        return await self._copy("models/coherence", config, [("user.ex", destination)])

    async def generate_web(self, config: ResolvedConfig) -> list[Path]:
        """Generate ``web/coherence_web.ex``."""
        return await self._copy("web", config, [("coherence_web.ex", self.web_path / "coherence_web.ex")])

    async def generate_views(self, config: ResolvedConfig) -> list[Path]:
        """Generate ``web/views/coherence/*.ex``."""
        out_dir = self.web_path / "views" / "coherence"
        outputs = [(name, out_dir / name) for name in select_view_files(config)]
        return await self._copy("views/coherence", config, outputs)

    async def generate_templates(self, config: ResolvedConfig) -> list[Path]:
        """Generate ``web/templates/coherence/<group>/*.html.eex``."""
        written: list[Path] = []
        for group, files in select_template_files(config):
            out_dir = self.web_path / "templates" / "coherence" / group
            outputs = [(name, out_dir / name) for name in files]
            written.extend(await self._copy(f"templates/coherence/{group}", config, outputs))
        return written

    async def generate_mailer(self, config: ResolvedConfig) -> list[Path]:
        """Generate the mailer and user email modules when email is needed."""
        if not config.use_email:
            return []
        out_dir = self.web_path / "emails" / "coherence"
        outputs = [(name, out_dir / name) for name in MAILER_FILES]
        return await self._copy("emails/coherence", config, outputs)

    async def generate_controllers(self, config: ResolvedConfig) -> list[Path]:
        """Generate ``web/controllers/coherence/*.ex``."""
        out_dir = self.web_path / "controllers" / "coherence"
        outputs = [(name, out_dir / name) for name in select_controller_files(config)]
        return await self._copy("controllers/coherence", config, outputs)
