"""Command-line entry point: ``coherence-install``.

Every capability, preset, and stage switch is accepted as ``--name`` and
``--no-name``.  Options are recorded in command-line order because order
matters: ``--full --no-lockable`` installs everything in ``full`` except
``lockable``.  Flags argparse does not know are handed to the resolver, which
reports them as unknown options.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Sequence

from coherence_installer.catalog import (
    ALL_CAPABILITIES,
    BOOLEAN_SWITCHES,
    PRESETS,
    STRING_OVERRIDES,
)
from coherence_installer.config import InstallerSettings
from coherence_installer.errors import InstallerError
from coherence_installer.logging_config import setup_logging
from coherence_installer.options import RequestedOption
from coherence_installer.pipeline import Installer, prepare_config
from coherence_installer.utils import print_error

_EPILOG = """\
Examples:
  coherence-install                          # authenticatable only
  coherence-install --full                   # all but confirmable, invitable, rememberable
  coherence-install --full-invitable
  coherence-install --full --no-lockable --no-trackable
  coherence-install --model="Account accounts" --repo=MyApp.Repo
"""

_HELP: dict[str, str] = {
    "default": "Install only authenticatable",
    "full": "authenticatable, recoverable, lockable, trackable, unlockable_with_token, registerable",
    "full_confirmable": "The --full options plus confirmable",
    "full_invitable": "The --full options plus invitable",
    "controllers": "Generate controller boilerplate (off by default)",
    "repo": "Override the default <Base>.Repo module",
    "model": 'Override the user model, e.g. --model="Account accounts"',
    "module": "Override the base module",
    "migration_path": "Directory for the generated migrations",
}


class _RecordFlag(argparse.Action):
    """Append ``(dest, True)`` for ``--x`` and ``(dest, False)`` for ``--no-x``."""

    def __init__(self, option_strings: list[str], dest: str, **kwargs: Any) -> None:
        super().__init__(option_strings, dest, nargs=0, default=argparse.SUPPRESS, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        value = not (option_string or "").startswith("--no-")
        _requested(namespace).append(RequestedOption(name=self.dest, value=value))


class _RecordValue(argparse.Action):
    """Append ``(dest, value)`` for string overrides."""

    def __init__(self, option_strings: list[str], dest: str, **kwargs: Any) -> None:
        super().__init__(option_strings, dest, default=argparse.SUPPRESS, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        _requested(namespace).append(RequestedOption(name=self.dest, value=str(values)))


def _requested(namespace: argparse.Namespace) -> list[RequestedOption]:
    if getattr(namespace, "requested", None) is None:
        namespace.requested = []
    return namespace.requested


def _option_strings(name: str, negatable: bool) -> list[str]:
    spellings = [name.replace("_", "-")]
    if "_" in name:
        spellings.append(name)
    strings = [f"--{s}" for s in spellings]
    if negatable:
        strings += [f"--no-{s}" for s in spellings]
    return strings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coherence-install",
        description="Configure Coherence for a Phoenix application.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_EPILOG,
        allow_abbrev=False,
    )
    parser.set_defaults(requested=None)

    presets = parser.add_argument_group("presets")
    for name in PRESETS:
        presets.add_argument(
            *_option_strings(name, negatable=True), dest=name, action=_RecordFlag,
            help=_HELP.get(name),
        )

    capabilities = parser.add_argument_group("capabilities")
    for cap in ALL_CAPABILITIES:
        capabilities.add_argument(
            *_option_strings(cap.value, negatable=True), dest=cap.value, action=_RecordFlag,
        )

    stages = parser.add_argument_group("stages")
    for name in BOOLEAN_SWITCHES:
        stages.add_argument(
            *_option_strings(name, negatable=True), dest=name, action=_RecordFlag,
            help=_HELP.get(name),
        )

    overrides = parser.add_argument_group("overrides")
    for name in STRING_OVERRIDES:
        overrides.add_argument(
            *_option_strings(name, negatable=False), dest=name, action=_RecordValue,
            metavar="VALUE", help=_HELP.get(name),
        )

    parser.add_argument("--project-root", default=None, help="Phoenix project directory (default: .)")
    parser.add_argument("--yes", "-y", action="store_true", help="Append config even if already present")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", default=None, help="Also write debug logs to this file")
    return parser


def parse_requested(
    argv: Sequence[str] | None = None,
) -> tuple[argparse.Namespace, list[RequestedOption]]:
    """Parse *argv* into the namespace and the ordered requested options.

    Unrecognised tokens are turned into requested options (``--foo`` ->
    ``foo=True``, ``--no-foo`` -> ``foo=False``, ``--foo=bar`` ->
    ``foo="bar"``) so the resolver can report them together.
    """
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    requested = list(args.requested or [])
    for token in unknown:
        requested.append(_unknown_to_option(token))
    return args, requested


def _unknown_to_option(token: str) -> RequestedOption:
    name = token.lstrip("-")
    if "=" in name:
        key, value = name.split("=", 1)
        return RequestedOption(name=key, value=value)
    if name.startswith("no-"):
        return RequestedOption(name=name[3:], value=False)
    return RequestedOption(name=name or token, value=True)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``coherence-install`` and ``python -m coherence_installer``."""
    args, requested = parse_requested(argv)

    settings = InstallerSettings.from_env()
    updates: dict[str, Any] = {"assume_yes": args.yes}
    if args.project_root:
        updates["project_root"] = Path(args.project_root)
    settings = settings.model_copy(update=updates)

    setup_logging("DEBUG" if args.verbose else settings.log_level, args.log_file)

    try:
        config = prepare_config(requested, settings)
    except InstallerError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    report = asyncio.run(Installer(settings).run(config))
    if not report.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
