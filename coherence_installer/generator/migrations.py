"""Migration planning and rendering.

The planner decides what each generated Ecto migration must contain:

* the main migration either creates the user table (no existing model) or
  alters it (existing model), adding the schema fields of every enabled
  capability in catalog order;
* the invitation and rememberable migrations create their own fixed tables
  when the matching capability is enabled.

Every plan consumes the current timestamp and hands back ``timestamp + 1`` so
that migrations generated in one run replay in generation order.  Callers
must thread the returned value into the next call.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from coherence_installer.catalog import Capability, schema_fields_for
from coherence_installer.options.models import ResolvedConfig
from coherence_installer.utils import camelize, underscore


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class MigrationVerb(str, Enum):
    CREATE = "create"
    ALTER = "alter"


class MigrationPlan(BaseModel):
    """Everything needed to render one migration file."""

    model_config = ConfigDict(frozen=True)

    verb: MigrationVerb
    name: str = Field(..., description="Snake-case migration name, e.g. 'create_coherence_user'")
    table: str
    fields: list[str] = Field(default_factory=list, description="Lines inside the table block")
    constraints: list[str] = Field(default_factory=list, description="Lines after the table block")
    timestamp: int

    @property
    def filename(self) -> str:
        return f"{self.timestamp}_{underscore(self.name)}.exs"


NEW_USER_FIELDS: tuple[str, ...] = ("add :name, :string", "add :email, :string")
TIMESTAMP_FIELDS: tuple[str, ...] = ("", "timestamps()")


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def plan_main_migration(config: ResolvedConfig) -> tuple[MigrationPlan, int]:
    """Plan the migration that adds Coherence fields to the user table.

    An existing model (``config.model_found``) gets an ``alter`` with only the
    capability fields.  Otherwise the table is created with ``name`` and
    ``email`` columns, the capability fields, timestamps, and a unique index
    on ``email``.
    """
    table = config.user_table_name
    capability_fields = schema_fields_for(config.capabilities)

    if config.model_found:
        plan = MigrationPlan(
            verb=MigrationVerb.ALTER,
            name=f"add_coherence_to_{config.model_name}",
            table=table,
            fields=capability_fields,
            constraints=[],
            timestamp=config.timestamp,
        )
    else:
        plan = MigrationPlan(
            verb=MigrationVerb.CREATE,
            name=f"create_coherence_{config.model_name}",
            table=table,
            fields=[*NEW_USER_FIELDS, *capability_fields, *TIMESTAMP_FIELDS],
            constraints=[f"create unique_index(:{table}, [:email])"],
            timestamp=config.timestamp,
        )
    return plan, config.timestamp + 1


def plan_invitation_migration(config: ResolvedConfig) -> tuple[Optional[MigrationPlan], int]:
    """Plan the ``invitations`` table when ``invitable`` is enabled."""
    if not config.has(Capability.INVITABLE):
        return None, config.timestamp

    plan = MigrationPlan(
        verb=MigrationVerb.CREATE,
        name="create_coherence_invitable",
        table="invitations",
        fields=[
            "add :name, :string",
            "add :email, :string",
            "add :token, :string",
            "timestamps()",
        ],
        constraints=[
            "create unique_index(:invitations, [:email])",
            "create index(:invitations, [:token])",
        ],
        timestamp=config.timestamp,
    )
    return plan, config.timestamp + 1


def plan_remember_migration(config: ResolvedConfig) -> tuple[Optional[MigrationPlan], int]:
    """Plan the ``rememberables`` table when ``rememberable`` is enabled."""
    if not config.has(Capability.REMEMBERABLE):
        return None, config.timestamp

    plan = MigrationPlan(
        verb=MigrationVerb.CREATE,
        name="create_coherence_rememberable",
        table="rememberables",
        fields=[
            "add :series_hash, :string",
            "add :token_hash, :string",
            "add :token_created_at, :datetime",
            f"add :user_id, references(:{config.user_table_name}, on_delete: :delete_all)",
            "",
            "timestamps()",
        ],
        constraints=[
            "create index(:rememberables, [:user_id])",
            "create index(:rememberables, [:series_hash])",
            "create index(:rememberables, [:token_hash])",
            "create unique_index(:rememberables, [:user_id, :series_hash, :token_hash])",
        ],
        timestamp=config.timestamp,
    )
    return plan, config.timestamp + 1


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def migration_module(plan: MigrationPlan, repo: str) -> str:
    """Return the migration module name, e.g. ``MyApp.Repo.Migrations.CreateCoherenceUser``."""
    return f"{repo}.Migrations.{camelize(plan.name)}"


def render_migration(plan: MigrationPlan, repo: str) -> str:
    """Render *plan* as an Ecto migration module.

    Indentation is two spaces per nesting level: ``change`` at 1, the table
    block and constraints at 2, field lines at 3.
    """
    lines = [
        f"defmodule {migration_module(plan, repo)} do",
        "  use Ecto.Migration",
        "",
        "  def change do",
        f"    {plan.verb.value} table(:{plan.table}) do",
    ]
    lines.extend(_indent(line, 6) for line in plan.fields)
    lines.append("    end")
    lines.extend(_indent(line, 4) for line in plan.constraints)
    lines.extend(["  end", "end", ""])
    return "\n".join(lines)


def default_migrations_path(repo: str) -> str:
    """Ecto's default migrations directory for *repo* (``MyApp.Repo`` -> ``priv/repo/migrations``)."""
    return f"priv/{underscore(repo.split('.')[-1])}/migrations"


def migrations_dir(config: ResolvedConfig) -> Path:
    """Directory the migrations of this run are written to."""
    relative = config.migration_path or default_migrations_path(config.repo)
    return config.project_root / relative


def _indent(line: str, spaces: int) -> str:
    return " " * spaces + line if line else ""
