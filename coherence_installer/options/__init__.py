"""Option resolution and configuration building.

Quick usage::

    from coherence_installer.options import Environment, RequestedOption, build, resolve

    caps, control = resolve([RequestedOption(name="full"), RequestedOption(name="lockable", value=False)])
    config = build(caps, control, Environment(base="MyApp"))
"""

from coherence_installer.options.builder import build, parse_model
from coherence_installer.options.models import (
    Environment,
    RequestedOption,
    ResolvedConfig,
    StageSwitches,
)
from coherence_installer.options.resolver import resolve

__all__ = [
    "Environment",
    "RequestedOption",
    "ResolvedConfig",
    "StageSwitches",
    "build",
    "parse_model",
    "resolve",
]
