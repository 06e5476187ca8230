"""Static feature catalog for the Coherence installer.

Everything the installer knows about Coherence lives here: the optional
capabilities, the presets that expand to sets of capabilities, which
capabilities need an email sender, which schema fields each capability adds
to the user table, and which boilerplate files each capability needs.

The tables are built once at import time and never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from types import MappingProxyType
from typing import Mapping


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class Capability(str, Enum):
    """An optional Coherence module.  Declaration order is canonical."""

    AUTHENTICATABLE = "authenticatable"
    RECOVERABLE = "recoverable"
    LOCKABLE = "lockable"
    TRACKABLE = "trackable"
    REMEMBERABLE = "rememberable"
    UNLOCKABLE_WITH_TOKEN = "unlockable_with_token"
    CONFIRMABLE = "confirmable"
    INVITABLE = "invitable"
    REGISTERABLE = "registerable"


ALL_CAPABILITIES: tuple[Capability, ...] = tuple(Capability)

_CANONICAL_INDEX: dict[Capability, int] = {
    cap: index for index, cap in enumerate(ALL_CAPABILITIES)
}


def canonical_order(capabilities: Iterable[Capability]) -> tuple[Capability, ...]:
    """Return *capabilities* deduplicated and sorted in catalog order."""
    return tuple(sorted(set(capabilities), key=_CANONICAL_INDEX.__getitem__))


def lookup_capability(name: str) -> Capability | None:
    """Return the capability called *name*, or ``None``."""
    try:
        return Capability(normalize_name(name))
    except ValueError:
        return None


def normalize_name(name: str) -> str:
    """Normalise a command-line style option name (``full-invitable`` -> ``full_invitable``)."""
    return name.strip().replace("-", "_")


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

_FULL = frozenset(ALL_CAPABILITIES) - {
    Capability.CONFIRMABLE,
    Capability.INVITABLE,
    Capability.REMEMBERABLE,
}

PRESETS: Mapping[str, frozenset[Capability]] = MappingProxyType(
    {
        "default": frozenset({Capability.AUTHENTICATABLE}),
        "full": _FULL,
        "full_confirmable": _FULL | {Capability.CONFIRMABLE},
        "full_invitable": _FULL | {Capability.INVITABLE},
    }
)

DEFAULT_CAPABILITIES: tuple[Capability, ...] = canonical_order(PRESETS["default"])


# ---------------------------------------------------------------------------
# Email dependency
# ---------------------------------------------------------------------------

EMAIL_CAPABILITIES: frozenset[Capability] = frozenset(
    {
        Capability.RECOVERABLE,
        Capability.UNLOCKABLE_WITH_TOKEN,
        Capability.CONFIRMABLE,
        Capability.INVITABLE,
    }
)


def requires_email(capabilities: Iterable[Capability]) -> bool:
    """Return ``True`` when any capability needs to send email."""
    return not EMAIL_CAPABILITIES.isdisjoint(capabilities)


# ---------------------------------------------------------------------------
# Control flags
# ---------------------------------------------------------------------------

# Stage switches that are on unless disabled with ``--no-<name>``.
DEFAULT_ON_SWITCHES: tuple[str, ...] = (
    "config",
    "web",
    "views",
    "migrations",
    "templates",
    "models",
    "emails",
    "boilerplate",
)

# Stage switches that are off unless enabled explicitly.
DEFAULT_OFF_SWITCHES: tuple[str, ...] = ("controllers",)

BOOLEAN_SWITCHES: tuple[str, ...] = DEFAULT_ON_SWITCHES + DEFAULT_OFF_SWITCHES

STRING_OVERRIDES: tuple[str, ...] = ("repo", "model", "module", "migration_path")

CONTROL_FLAGS: frozenset[str] = frozenset(BOOLEAN_SWITCHES + STRING_OVERRIDES)


# ---------------------------------------------------------------------------
# Schema fields contributed to the user table
# ---------------------------------------------------------------------------

SCHEMA_FIELDS: Mapping[Capability, tuple[str, ...]] = MappingProxyType(
    {
        Capability.AUTHENTICATABLE: (
            "# authenticatable",
            "add :password_hash, :string",
        ),
        Capability.RECOVERABLE: (
            "# recoverable",
            "add :reset_password_token, :string",
            "add :reset_password_sent_at, :datetime",
        ),
        Capability.LOCKABLE: (
            "# lockable",
            "add :failed_attempts, :integer, default: 0",
            "add :locked_at, :datetime",
        ),
        Capability.TRACKABLE: (
            "# trackable",
            "add :sign_in_count, :integer, default: 0",
            "add :current_sign_in_at, :datetime",
            "add :last_sign_in_at, :datetime",
            "add :current_sign_in_ip, :string",
            "add :last_sign_in_ip, :string",
        ),
        Capability.REMEMBERABLE: (
            "# rememberable",
            "add :remember_created_at, :datetime",
        ),
        Capability.UNLOCKABLE_WITH_TOKEN: (
            "# unlockable_with_token",
            "add :unlock_token, :string",
        ),
        Capability.CONFIRMABLE: (
            "# confirmable",
            "add :confirmation_token, :string",
            "add :confirmed_at, :datetime",
            "add :confirmation_sent_at, :datetime",
        ),
    }
)


def schema_fields_for(capabilities: Iterable[Capability]) -> list[str]:
    """Concatenate the schema fields of *capabilities* in catalog order."""
    enabled = set(capabilities)
    fields: list[str] = []
    for cap, lines in SCHEMA_FIELDS.items():
        if cap in enabled:
            fields.extend(lines)
    return fields


# ---------------------------------------------------------------------------
# Boilerplate tables
# ---------------------------------------------------------------------------

# Guard values: "all" (always), "use_email" (any email capability), or a
# capability name.
ALL = "all"
USE_EMAIL = "use_email"

VIEW_FILES: tuple[tuple[str, str], ...] = (
    (ALL, "coherence_view.ex"),
    (Capability.CONFIRMABLE.value, "confirmation_view.ex"),
    (USE_EMAIL, "email_view.ex"),
    (Capability.INVITABLE.value, "invitation_view.ex"),
    (ALL, "layout_view.ex"),
    (ALL, "coherence_view_helpers.ex"),
    (Capability.RECOVERABLE.value, "password_view.ex"),
    (Capability.REGISTERABLE.value, "registration_view.ex"),
    (Capability.AUTHENTICATABLE.value, "session_view.ex"),
    (Capability.UNLOCKABLE_WITH_TOKEN.value, "unlock_view.ex"),
)

TEMPLATE_FILES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("email", USE_EMAIL, ("confirmation", "invitation", "password", "unlock")),
    ("invitation", Capability.INVITABLE.value, ("edit", "new")),
    ("layout", ALL, ("app", "email")),
    ("password", Capability.RECOVERABLE.value, ("edit", "new")),
    ("registration", Capability.REGISTERABLE.value, ("new",)),
    ("session", Capability.AUTHENTICATABLE.value, ("new",)),
    ("unlock", Capability.UNLOCKABLE_WITH_TOKEN.value, ("new",)),
)

CONTROLLER_FILES: tuple[tuple[str, str], ...] = (
    (Capability.CONFIRMABLE.value, "confirmation_controller.ex"),
    (Capability.INVITABLE.value, "invitation_controller.ex"),
    (Capability.RECOVERABLE.value, "password_controller.ex"),
    (Capability.REGISTERABLE.value, "registration_controller.ex"),
    (Capability.AUTHENTICATABLE.value, "session_controller.ex"),
    (Capability.UNLOCKABLE_WITH_TOKEN.value, "unlock_controller.ex"),
)

MAILER_FILES: tuple[str, ...] = ("coherence_mailer.ex", "user_email.ex")


def guard_satisfied(
    guard: str, capabilities: Iterable[Capability], use_email: bool
) -> bool:
    """Evaluate a boilerplate table guard against an enabled capability set."""
    if guard == ALL:
        return True
    if guard == USE_EMAIL:
        return use_email
    return guard in {cap.value for cap in capabilities}
