"""Shared pytest fixtures for the Coherence installer test suite.

Provides reusable fixtures for:
- A temporary Phoenix project skeleton (mix.exs, config/config.exs, web/models)
- Installer settings pointing at that project
- A factory for resolved configurations with a fixed timestamp
- Fixed-answer model probes and recording confirm callbacks
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from coherence_installer.config import InstallerSettings
from coherence_installer.generator.model_probe import StaticModelProbe
from coherence_installer.options import RequestedOption, ResolvedConfig
from coherence_installer.pipeline import prepare_config

FIXED_TIMESTAMP = 20260115103000

MIX_EXS = textwrap.dedent(
    """\
    defmodule MyApp.Mixfile do
      use Mix.Project

      def project do
        [app: :my_app,
         version: "0.0.1",
         elixir: "~> 1.2",
         deps: deps()]
      end

      defp deps do
        [{:phoenix, "~> 1.2.0"},
         {:coherence, "~> 0.3"}]
      end
    end
    """
)

CONFIG_EXS = textwrap.dedent(
    """\
    use Mix.Config

    config :my_app,
      ecto_repos: [MyApp.Repo]

    import_config "#{Mix.env}.exs"
    """
)


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def phoenix_project(tmp_path: Path) -> Path:
    """Temporary Phoenix project with mix.exs, config/config.exs and web/models."""
    project_dir = tmp_path / "my_app"
    (project_dir / "config").mkdir(parents=True)
    (project_dir / "web" / "models").mkdir(parents=True)
    (project_dir / "mix.exs").write_text(MIX_EXS, encoding="utf-8")
    (project_dir / "config" / "config.exs").write_text(CONFIG_EXS, encoding="utf-8")
    yield project_dir


@pytest.fixture
def config_file(phoenix_project: Path) -> Path:
    """Path to the project's config/config.exs."""
    return phoenix_project / "config" / "config.exs"


# ---------------------------------------------------------------------------
# Settings & configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_timestamp() -> int:
    """Migration timestamp seed used by every configuration built in tests."""
    return FIXED_TIMESTAMP


@pytest.fixture
def settings(phoenix_project: Path) -> InstallerSettings:
    """Installer settings for the temporary project."""
    return InstallerSettings(project_root=phoenix_project)


def options(*specs: str | tuple[str, bool | str]) -> list[RequestedOption]:
    """Build requested options: ``"full"`` or ``("lockable", False)``."""
    requested = []
    for spec in specs:
        if isinstance(spec, tuple):
            name, value = spec
            requested.append(RequestedOption(name=name, value=value))
        else:
            requested.append(RequestedOption(name=spec))
    return requested


@pytest.fixture
def make_config(settings: InstallerSettings) -> Callable[..., ResolvedConfig]:
    """Factory: ``make_config("full", ("lockable", False), model_found=True)``."""

    def _make(*specs: Any, model_found: bool | None = None) -> ResolvedConfig:
        config = prepare_config(options(*specs), settings, timestamp=FIXED_TIMESTAMP)
        if model_found is not None:
            config = config.model_copy(update={"model_found": model_found})
        return config

    return _make


# ---------------------------------------------------------------------------
# Probes & prompts
# ---------------------------------------------------------------------------

@pytest.fixture
def model_missing() -> StaticModelProbe:
    return StaticModelProbe(found=False)


@pytest.fixture
def model_present() -> StaticModelProbe:
    return StaticModelProbe(found=True)


class RecordingConfirm:
    """Confirm callback that records every question and returns a fixed answer."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.questions: list[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        return self.answer


@pytest.fixture
def confirm_yes() -> RecordingConfirm:
    return RecordingConfirm(True)


@pytest.fixture
def confirm_no() -> RecordingConfirm:
    return RecordingConfirm(False)
