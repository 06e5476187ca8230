"""Unit tests for option resolution (coherence_installer.options.resolver).

Tests cover:
- Default capability set when nothing is requested
- Preset expansion and later-wins negation
- Order independence when no negation is involved
- Control options passed through in order
- Unknown option reporting
"""

from __future__ import annotations

import pytest

from coherence_installer.catalog import PRESETS, Capability, canonical_order
from coherence_installer.errors import UnknownOptionError
from coherence_installer.options import RequestedOption, resolve

pytestmark = pytest.mark.unit


def _opt(name: str, value: bool | str = True) -> RequestedOption:
    return RequestedOption(name=name, value=value)


def _names(caps) -> list[str]:
    return [cap.value for cap in caps]


# ---------------------------------------------------------------------------
# Defaults and presets
# ---------------------------------------------------------------------------


class TestResolveCapabilities:
    def test_nothing_requested_gives_authenticatable(self):
        caps, control = resolve([])
        assert caps == (Capability.AUTHENTICATABLE,)
        assert control == []

    def test_only_control_options_gives_authenticatable(self):
        caps, control = resolve([_opt("controllers")])
        assert caps == (Capability.AUTHENTICATABLE,)
        assert [opt.name for opt in control] == ["controllers"]

    def test_full_then_no_lockable(self):
        caps, _ = resolve([_opt("full"), _opt("lockable", False)])
        assert _names(caps) == [
            "authenticatable",
            "recoverable",
            "trackable",
            "unlockable_with_token",
            "registerable",
        ]

    def test_full_confirmable(self):
        caps, _ = resolve([_opt("full_confirmable")])
        assert caps == canonical_order(PRESETS["full"] | {Capability.CONFIRMABLE})

    def test_dashed_preset_name(self):
        caps, _ = resolve([_opt("full-invitable")])
        assert Capability.INVITABLE in caps

    def test_preset_plus_capability(self):
        caps, _ = resolve([_opt("full"), _opt("invitable")])
        assert caps == canonical_order(PRESETS["full_invitable"])

    def test_later_preset_readds_removed_capability(self):
        caps, _ = resolve([_opt("lockable", False), _opt("full")])
        assert Capability.LOCKABLE in caps

    def test_removing_everything_falls_back_to_default(self):
        caps, _ = resolve([_opt("authenticatable"), _opt("authenticatable", False)])
        assert caps == (Capability.AUTHENTICATABLE,)

    def test_duplicates_collapse(self):
        caps, _ = resolve([_opt("lockable"), _opt("lockable"), _opt("authenticatable")])
        assert caps == (Capability.AUTHENTICATABLE, Capability.LOCKABLE)

    def test_result_in_catalog_order(self):
        caps, _ = resolve([_opt("registerable"), _opt("authenticatable"), _opt("confirmable")])
        assert _names(caps) == ["authenticatable", "confirmable", "registerable"]

    def test_order_independent_without_negation(self):
        forward = [_opt("invitable"), _opt("full"), _opt("rememberable")]
        caps_forward, _ = resolve(forward)
        caps_reverse, _ = resolve(list(reversed(forward)))
        assert caps_forward == caps_reverse


# ---------------------------------------------------------------------------
# Control options
# ---------------------------------------------------------------------------


class TestResolveControl:
    def test_control_options_keep_order(self):
        _, control = resolve(
            [_opt("model", "Account accounts"), _opt("controllers"), _opt("repo", "X.Repo")]
        )
        assert [(opt.name, opt.value) for opt in control] == [
            ("model", "Account accounts"),
            ("controllers", True),
            ("repo", "X.Repo"),
        ]

    def test_control_names_are_normalised(self):
        _, control = resolve([_opt("migration-path", "priv/db")])
        assert control == [RequestedOption(name="migration_path", value="priv/db")]

    def test_negated_preset_is_passed_through(self):
        caps, control = resolve([_opt("full", False)])
        assert caps == (Capability.AUTHENTICATABLE,)
        assert control == [RequestedOption(name="full", value=False)]


# ---------------------------------------------------------------------------
# Unknown options
# ---------------------------------------------------------------------------


class TestUnknownOptions:
    def test_single_unknown(self):
        with pytest.raises(UnknownOptionError) as exc_info:
            resolve([_opt("bogus")])
        assert exc_info.value.names == ["bogus"]
        assert "bogus" in str(exc_info.value)

    def test_all_unknowns_reported(self):
        with pytest.raises(UnknownOptionError) as exc_info:
            resolve([_opt("bogus"), _opt("full"), _opt("other", False)])
        assert exc_info.value.names == ["bogus", "other"]
        assert str(exc_info.value) == "Unknown option(s): bogus, other"
