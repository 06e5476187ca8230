"""Configuration builder: resolved capabilities + environment -> ResolvedConfig.

Pure functions only.  Everything that can be wrong with the user's input is
detected here, before the pipeline touches a single file.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from coherence_installer.catalog import (
    BOOLEAN_SWITCHES,
    STRING_OVERRIDES,
    Capability,
    canonical_order,
    requires_email,
)
from coherence_installer.errors import InvalidModelSpecError, MissingBaseNamespaceError
from coherence_installer.utils import utc_timestamp

from .models import Environment, RequestedOption, ResolvedConfig, StageSwitches

logger = logging.getLogger(__name__)


def build(
    capabilities: Sequence[Capability],
    control_flags: Sequence[RequestedOption],
    environment: Environment,
) -> ResolvedConfig:
    """Combine resolved capabilities with environment facts.

    Args:
        capabilities: Output of :func:`~coherence_installer.options.resolver.resolve`.
        control_flags: Control options passed through by the resolver.
        environment: Host project facts (base namespace, project root,
            optional timestamp seed).

    Returns:
        A frozen :class:`ResolvedConfig`.

    Raises:
        MissingBaseNamespaceError: If neither ``environment.base`` nor a
            ``module`` override provide a base namespace.
        InvalidModelSpecError: If a ``model`` override is not ``"Name table"``.
    """
    switches: dict[str, bool] = StageSwitches().model_dump()
    overrides: dict[str, str] = {}

    for flag in control_flags:
        if flag.name in BOOLEAN_SWITCHES and isinstance(flag.value, bool):
            switches[flag.name] = flag.value
        elif flag.name in STRING_OVERRIDES and isinstance(flag.value, str):
            overrides[flag.name] = flag.value
        else:
            # Presets given as ``--no-full`` end up here; they select nothing.
            logger.debug("Ignoring control option %s=%r", flag.name, flag.value)

    base = (overrides.get("module") or environment.base).strip()
    if not base:
        raise MissingBaseNamespaceError()

    repo = overrides.get("repo") or f"{base}.Repo"
    user_schema, user_table_name = parse_model(overrides.get("model"), base)
    enabled = canonical_order(capabilities)

    timestamp = environment.timestamp if environment.timestamp is not None else utc_timestamp()

    config = ResolvedConfig(
        capabilities=enabled,
        use_email=requires_email(enabled),
        base=base,
        repo=repo,
        user_schema=user_schema,
        user_table_name=user_table_name,
        project_root=environment.project_root,
        switches=StageSwitches(**switches),
        migration_path=overrides.get("migration_path"),
        timestamp=timestamp,
    )
    logger.debug("Built configuration: %s", _summary(config))
    return config


def parse_model(spec: str | None, base: str) -> tuple[str, str]:
    """Parse a ``"Name table"`` model override.

    The model name is prefixed with *base* unless it already starts with it.
    Without an override the default is ``<base>.User`` stored in ``users``.

    Raises:
        InvalidModelSpecError: If *spec* does not split into exactly two tokens.
    """
    if spec is None:
        return f"{base}.User", "users"

    tokens = spec.split()
    if len(tokens) != 2:
        raise InvalidModelSpecError(spec)

    model, table = tokens
    if not model.startswith(base):
        model = f"{base}.{model}"
    return model, table


def _summary(config: ResolvedConfig) -> dict[str, Any]:
    return {
        "opts": config.opts,
        "use_email": config.use_email,
        "user_schema": config.user_schema,
        "table": config.user_table_name,
        "repo": config.repo,
    }
