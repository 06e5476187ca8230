"""Generation of the ``:coherence`` config block and guarded patching of config.exs.

The block is wrapped between fixed start/end marker comments.  Patching
appends the block to an existing config file; it never creates the file and
never removes or replaces an earlier block.  If the start marker is already
present the caller's ``confirm`` callback decides whether a second block is
appended.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from coherence_installer.options.models import ResolvedConfig

logger = logging.getLogger(__name__)

CONFIG_MARKER_START = "%% Coherence Configuration %%"
CONFIG_MARKER_END = "%% End Coherence Configuration %%"

DUPLICATE_PROMPT = (
    "Your config file already contains Coherence configuration. "
    "Are you sure you want to add another?"
)


# ---------------------------------------------------------------------------
# Block generation
# ---------------------------------------------------------------------------


def build_config_block(config: ResolvedConfig) -> str:
    """Render the marker-wrapped ``config :coherence`` block for *config*."""
    opts = ", ".join(f":{name}" for name in config.opts)
    lines = [
        f"# {CONFIG_MARKER_START}   Don't remove this line",
        "config :coherence,",
        f"  user_schema: {config.user_schema},",
        f"  repo: {config.repo},",
        f"  module: {config.base},",
        '  logged_out_url: "/",',
    ]
    if config.use_email:
        lines.append('  email_from: {"Your Name", "yourname@example.com"},')
    lines.append(f"  opts: [{opts}]")

    if config.use_email:
        lines.extend(
            [
                "",
                f"config :coherence, {config.base}.Coherence.Mailer,",
                "  adapter: Swoosh.Adapters.Sendgrid,",
                '  api_key: "your api key here"',
            ]
        )

    lines.append(f"# {CONFIG_MARKER_END}")
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Patching
# ---------------------------------------------------------------------------


class PatchOutcome(str, Enum):
    APPENDED = "appended"
    MISSING_FILE = "missing_file"
    DECLINED = "declined"


class PatchResult(BaseModel):
    """Outcome of one :func:`patch_config` call."""

    applied: bool
    outcome: PatchOutcome
    message: str


def patch_config(
    config_text: str,
    target_file: Path,
    confirm: Callable[[str], bool],
) -> PatchResult:
    """Append *config_text* to *target_file* unless that would be unwanted.

    Args:
        config_text: The marker-wrapped block from :func:`build_config_block`.
        target_file: Path to ``config/config.exs``.
        confirm: Called with a question when the file already holds a
            Coherence block; a falsy answer leaves the file untouched.

    Returns:
        A :class:`PatchResult`.  A missing file or a declined confirmation is
        reported with ``applied=False``; neither raises.
    """
    if not target_file.is_file():
        logger.warning("Config file %s not found", target_file)
        return PatchResult(
            applied=False,
            outcome=PatchOutcome.MISSING_FILE,
            message=f"Could not find {target_file}. Configuration was not added!",
        )

    source = target_file.read_text(encoding="utf-8")
    if CONFIG_MARKER_START in source and not confirm(DUPLICATE_PROMPT):
        logger.info("Duplicate Coherence config declined for %s", target_file)
        return PatchResult(
            applied=False,
            outcome=PatchOutcome.DECLINED,
            message="Configuration was not added!",
        )

    target_file.write_text(source + "\n" + config_text, encoding="utf-8")
    logger.info("Appended Coherence config to %s", target_file)
    return PatchResult(
        applied=True,
        outcome=PatchOutcome.APPENDED,
        message=f"Your {target_file.name} file was updated.",
    )
