"""Option resolution: presets + toggles -> one canonical capability set.

The resolver folds over the requested options in the order received.  Presets
union their expansion into the accumulator, capability toggles insert or
remove a single capability, and everything else is passed through to the
configuration builder untouched.  A ``false`` toggle removes the capability
even when an earlier preset added it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from coherence_installer.catalog import (
    CONTROL_FLAGS,
    DEFAULT_CAPABILITIES,
    PRESETS,
    Capability,
    canonical_order,
    lookup_capability,
    normalize_name,
)
from coherence_installer.errors import UnknownOptionError

from .models import RequestedOption

logger = logging.getLogger(__name__)


def resolve(
    requested: Sequence[RequestedOption],
) -> tuple[tuple[Capability, ...], list[RequestedOption]]:
    """Resolve *requested* into enabled capabilities and control options.

    Args:
        requested: Options in command-line order.

    Returns:
        ``(capabilities, control_options)``.  Capabilities are deduplicated
        and in catalog order; control options keep their original order
        with normalised names.

    Raises:
        UnknownOptionError: If any option name is not a preset, capability,
            or control flag.  All unknown names are reported at once.
    """
    enabled: set[Capability] = set()
    control: list[RequestedOption] = []

    for option in requested:
        name = normalize_name(option.name)
        capability = lookup_capability(name)

        if name in PRESETS and option.value is True:
            enabled |= PRESETS[name]
        elif capability is not None and isinstance(option.value, bool):
            if option.value:
                enabled.add(capability)
            else:
                enabled.discard(capability)
        else:
            control.append(RequestedOption(name=name, value=option.value))

    unknown = [
        opt.name
        for opt in control
        if opt.name not in CONTROL_FLAGS and opt.name not in PRESETS
    ]
    if unknown:
        raise UnknownOptionError(unknown)

    capabilities = canonical_order(enabled) if enabled else DEFAULT_CAPABILITIES
    logger.debug(
        "Resolved capabilities: %s (control options: %s)",
        [cap.value for cap in capabilities],
        [opt.name for opt in control],
    )
    return capabilities, control
