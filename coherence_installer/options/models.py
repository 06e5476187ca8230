"""Pydantic v2 models for option resolution and the resolved configuration.

``ResolvedConfig`` is the single immutable record threaded through every
pipeline stage.  Stages never mutate it; they return an updated copy via
``model_copy``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from coherence_installer.catalog import Capability


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class RequestedOption(BaseModel):
    """A single ``(name, value)`` pair requested by the caller.

    Booleans come from ``--name`` / ``--no-name`` flags, strings from
    overrides such as ``--model="Account accounts"``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Option name, e.g. 'full' or 'lockable'")
    value: Union[bool, str] = Field(default=True, description="Flag value or override string")


class Environment(BaseModel):
    """Facts about the host project needed to build a configuration."""

    model_config = ConfigDict(frozen=True)

    base: str = Field(default="", description="Base namespace, e.g. 'MyApp'")
    project_root: Path = Field(default=Path("."))
    timestamp: Optional[int] = Field(
        default=None, description="Migration timestamp seed; defaults to the current UTC time"
    )


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------


class StageSwitches(BaseModel):
    """Per-stage on/off switches."""

    model_config = ConfigDict(frozen=True)

    config: bool = True
    web: bool = True
    views: bool = True
    migrations: bool = True
    templates: bool = True
    models: bool = True
    emails: bool = True
    boilerplate: bool = True
    controllers: bool = False


class ResolvedConfig(BaseModel):
    """The resolved, immutable configuration for one installer run."""

    model_config = ConfigDict(frozen=True)

    capabilities: tuple[Capability, ...] = Field(..., description="Enabled capabilities, canonical order")
    use_email: bool = False
    base: str
    repo: str
    user_schema: str
    user_table_name: str
    project_root: Path = Field(default=Path("."))
    switches: StageSwitches = Field(default_factory=StageSwitches)
    migration_path: Optional[str] = None
    timestamp: int = Field(..., ge=0)

    # Filled in by pipeline stages.
    model_found: Optional[bool] = None
    config_block: str = ""
    instructions: str = ""

    def has(self, capability: Capability) -> bool:
        """Return ``True`` if *capability* is enabled."""
        return capability in self.capabilities

    @property
    def opts(self) -> list[str]:
        """Enabled capability names in canonical order."""
        return [cap.value for cap in self.capabilities]

    @property
    def model_name(self) -> str:
        """Lower-cased last segment of the user schema (``MyApp.User`` -> ``user``)."""
        return self.user_schema.split(".")[-1].lower()

    def with_instructions(self, text: str) -> "ResolvedConfig":
        """Return a copy with *text* appended to the accumulated instructions."""
        if not text:
            return self
        return self.model_copy(update={"instructions": self.instructions + text})
