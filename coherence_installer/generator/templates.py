"""Jinja2 rendering of the bundled Coherence boilerplate.

Templates live under ``coherence_installer/templates/`` as
``<category>/<group>/<file>.j2`` and are rendered with the bindings built by
:func:`~coherence_installer.generator.boilerplate.build_bindings`.  A custom
template directory (``COHERENCE_TEMPLATE_DIR``) replaces the bundled one
wholesale.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplatesNotFound,
    select_autoescape,
)

from coherence_installer.utils import camelize, underscore

logger = logging.getLogger(__name__)

BUNDLED_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"

TEMPLATE_SUFFIX = ".j2"


class TemplateRenderer:
    """Loads ``.j2`` boilerplate templates and writes the rendered files.

    Output is Elixir and EEx source, so nothing is HTML-escaped.  A binding
    missing from the context raises ``jinja2.UndefinedError`` instead of
    leaving a blank in the generated module.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else BUNDLED_TEMPLATES
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(camelize=camelize, underscore=underscore)

    def render(self, template_key: str, bindings: dict[str, Any]) -> str:
        """Render the template at *template_key* (e.g. ``"web/coherence_web.ex.j2"``)."""
        return self.env.get_template(template_key).render(**bindings)

    async def render_to_file(
        self,
        template_key: str,
        destination: str | Path,
        bindings: dict[str, Any],
    ) -> Path:
        """Render *template_key* into *destination*, creating parent directories.

        An existing file at *destination* is replaced.
        """
        body = self.render(template_key, bindings)
        target = Path(destination)
        await asyncio.to_thread(_write_text, target, body)
        logger.debug("Rendered %s -> %s", template_key, target)
        return target

    async def copy_from(
        self,
        template_prefix: str,
        bindings: dict[str, Any],
        outputs: Sequence[tuple[str, str | Path]],
    ) -> list[Path]:
        """Render a batch of files from one template directory.

        Every template of the batch is looked up before the first file is
        written, so a custom template directory missing one of them leaves
        the project untouched.

        Args:
            template_prefix: Directory under the template root, e.g.
                ``"views/coherence"``.
            bindings: Template variables shared by the whole batch.
            outputs: ``(source, destination)`` pairs where ``source`` is the
                file name without the ``.j2`` suffix.

        Returns:
            The destinations written, in *outputs* order.

        Raises:
            jinja2.TemplatesNotFound: If any source has no template under
                *template_prefix*.
        """
        keys = [f"{template_prefix}/{source}{TEMPLATE_SUFFIX}" for source, _ in outputs]
        available = set(self.list_templates(template_prefix))
        missing = [key for key in keys if key not in available]
        if missing:
            raise TemplatesNotFound(missing)

        return [
            await self.render_to_file(key, destination, bindings)
            for key, (_, destination) in zip(keys, outputs)
        ]

    def list_templates(self, prefix: str = "") -> list[str]:
        """Template keys under *prefix*, sorted, as posix paths from the template root."""
        root = self.template_dir / prefix if prefix else self.template_dir
        if not root.is_dir():
            return []
        return sorted(p.relative_to(self.template_dir).as_posix() for p in root.rglob(f"*{TEMPLATE_SUFFIX}"))


def _write_text(path: Path, body: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
