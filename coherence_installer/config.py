"""Coherence installer settings.

Describes where things live in the host Phoenix project.  All settings use a
Pydantic v2 model so they can be validated at construction time and loaded
from environment variables without boiler-plate.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from coherence_installer.utils import camelize

_MIX_APP_RE = re.compile(r"\bapp:\s*:([a-z_][a-zA-Z0-9_]*)")


class InstallerSettings(BaseModel):
    """Host project layout and runtime options.

    Instances are created once by the CLI entry point and then passed to the
    ``Installer``.
    """

    project_root: Path = Field(default=Path("."))
    config_file: str = Field(default="config/config.exs")
    web_dir: str = Field(default="web")
    models_dir: str = Field(default="web/models")
    build_dir: str = Field(default="_build")
    template_dir: Optional[Path] = Field(
        default=None, description="Override for the bundled boilerplate templates"
    )
    app: Optional[str] = Field(default=None, description="OTP application name, e.g. 'my_app'")
    log_level: str = Field(default="WARNING")
    assume_yes: bool = Field(
        default=False, description="Answer yes when asked to append a second config block"
    )

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def config_path(self) -> Path:
        """Path to the persistent ``config.exs`` file."""
        return self.project_root / self.config_file

    @property
    def web_path(self) -> Path:
        """Root of the ``web/`` directory."""
        return self.project_root / self.web_dir

    @property
    def models_path(self) -> Path:
        """Directory scanned for existing model declarations."""
        return self.project_root / self.models_dir

    @property
    def build_path(self) -> Path:
        """Mix build directory holding compiled ``.beam`` files."""
        return self.project_root / self.build_dir

    @property
    def mix_file(self) -> Path:
        return self.project_root / "mix.exs"

    # ------------------------------------------------------------------
    # Base namespace
    # ------------------------------------------------------------------

    def base_namespace(self) -> str:
        """Return the base module inferred from ``app`` or ``mix.exs``.

        Returns an empty string when neither is available; the configuration
        builder treats that as a fatal precondition unless ``--module`` is
        given.
        """
        app = self.app or detect_app_name(self.project_root)
        return inflect_base(app) if app else ""

    @classmethod
    def from_env(cls) -> "InstallerSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            COHERENCE_PROJECT_ROOT, COHERENCE_CONFIG_FILE, COHERENCE_APP,
            COHERENCE_TEMPLATE_DIR, COHERENCE_LOG_LEVEL.
        """
        kwargs: dict[str, object] = {}
        if os.environ.get("COHERENCE_PROJECT_ROOT"):
            kwargs["project_root"] = Path(os.environ["COHERENCE_PROJECT_ROOT"])
        if os.environ.get("COHERENCE_CONFIG_FILE"):
            kwargs["config_file"] = os.environ["COHERENCE_CONFIG_FILE"]
        if os.environ.get("COHERENCE_APP"):
            kwargs["app"] = os.environ["COHERENCE_APP"]
        if os.environ.get("COHERENCE_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["COHERENCE_TEMPLATE_DIR"])
        if os.environ.get("COHERENCE_LOG_LEVEL"):
            kwargs["log_level"] = os.environ["COHERENCE_LOG_LEVEL"]
        return cls(**kwargs)


def detect_app_name(project_root: Path) -> str | None:
    """Read the OTP application name (``app: :my_app``) from ``mix.exs``."""
    mix_file = Path(project_root) / "mix.exs"
    if not mix_file.is_file():
        return None
    match = _MIX_APP_RE.search(mix_file.read_text(encoding="utf-8"))
    return match.group(1) if match else None


def inflect_base(app: str) -> str:
    """Convert an application name to its base module (``my_app`` -> ``MyApp``)."""
    return camelize(app)
