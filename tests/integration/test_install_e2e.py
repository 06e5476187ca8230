"""End-to-end installer runs against a temporary Phoenix project.

Each test resolves options, runs every enabled stage with the real file
migration sink and template renderer, and inspects the files left behind.
"""

from __future__ import annotations

import pytest

from coherence_installer.generator.config_patcher import (
    CONFIG_MARKER_END,
    CONFIG_MARKER_START,
    DUPLICATE_PROMPT,
)
from coherence_installer.generator.model_probe import SourceModelProbe
from coherence_installer.options import RequestedOption
from coherence_installer.pipeline import Installer, prepare_config

pytestmark = pytest.mark.integration


def _requested(*names: str) -> list[RequestedOption]:
    return [RequestedOption(name=name) for name in names]


def _migrations(project):
    return sorted((project / "priv" / "repo" / "migrations").glob("*.exs"))


@pytest.mark.asyncio
async def test_authenticatable_new_model(phoenix_project, settings, fixed_timestamp, confirm_no):
    config = prepare_config(_requested("authenticatable"), settings, timestamp=fixed_timestamp)
    report = await Installer(settings, probe=SourceModelProbe(settings.build_path), confirm=confirm_no).run(config)

    assert report.success is True

    migrations = _migrations(phoenix_project)
    assert [path.name for path in migrations] == [f"{fixed_timestamp}_create_coherence_user.exs"]
    body = migrations[0].read_text()
    assert "    create table(:users) do\n" in body
    assert (
        "      add :name, :string\n"
        "      add :email, :string\n"
        "      # authenticatable\n"
        "      add :password_hash, :string\n"
        "\n"
        "      timestamps()\n"
    ) in body
    assert "invitations" not in body

    config_text = settings.config_path.read_text()
    assert config_text.count(CONFIG_MARKER_START) == 1
    assert CONFIG_MARKER_END in config_text
    assert "opts: [:authenticatable]" in config_text
    assert confirm_no.questions == []

    web = phoenix_project / "web"
    assert (web / "models" / "coherence" / "user.ex").is_file()
    assert (web / "coherence_web.ex").is_file()
    assert (web / "views" / "coherence" / "session_view.ex").is_file()
    assert (web / "templates" / "coherence" / "session" / "new.html.eex").is_file()
    assert not (web / "emails").exists()
    assert not (web / "controllers").exists()

    assert "mix ecto.setup" in report.instructions
    assert "Add the following items to your" not in report.instructions


@pytest.mark.asyncio
async def test_full_invitable_existing_model(phoenix_project, settings, fixed_timestamp, confirm_no):
    (phoenix_project / "web" / "models" / "user.ex").write_text(
        "defmodule MyApp.User do\n  use MyApp.Web, :model\nend\n"
    )
    config = prepare_config(_requested("full", "invitable"), settings, timestamp=fixed_timestamp)
    report = await Installer(settings, probe=SourceModelProbe(settings.build_path), confirm=confirm_no).run(config)

    assert report.success is True
    assert report.config.model_found is True

    main, invitation = _migrations(phoenix_project)
    assert main.name == f"{fixed_timestamp}_add_coherence_to_user.exs"
    assert invitation.name == f"{fixed_timestamp + 1}_create_coherence_invitable.exs"
    assert "    alter table(:users) do\n" in main.read_text()
    assert "add :name, :string" not in main.read_text()
    assert "    create table(:invitations) do\n" in invitation.read_text()

    assert not (phoenix_project / "web" / "models" / "coherence").exists()
    assert (phoenix_project / "web" / "emails" / "coherence" / "user_email.ex").is_file()
    assert (phoenix_project / "web" / "views" / "coherence" / "invitation_view.ex").is_file()
    assert "Add the following items to your MyApp.User model" in report.instructions


@pytest.mark.asyncio
async def test_second_run_declined_keeps_config(phoenix_project, settings, fixed_timestamp, confirm_no):
    first = prepare_config(_requested("authenticatable"), settings, timestamp=fixed_timestamp)
    first_report = await Installer(settings, confirm=confirm_no).run(first)
    after_first = settings.config_path.read_bytes()
    coherence_web = phoenix_project / "web" / "coherence_web.ex"
    coherence_web.write_text("# my customisations\n")

    second = prepare_config(_requested("authenticatable"), settings, timestamp=fixed_timestamp + 10)
    report = await Installer(settings, confirm=confirm_no).run(second)

    assert report.success is True
    assert settings.config_path.read_bytes() == after_first
    assert confirm_no.questions[0] == DUPLICATE_PROMPT
    assert report.config.config_block in report.instructions
    assert len(_migrations(phoenix_project)) == 2

    assert coherence_web.read_text() == "# my customisations\n"
    boilerplate = [path for path in first_report.written if path.suffix != ".exs"]
    assert report.kept == boilerplate
    assert report.written == _migrations(phoenix_project)[1:]
    assert len(confirm_no.questions) == 1 + len(boilerplate)
