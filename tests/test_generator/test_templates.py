"""Tests for the Jinja2 template renderer (coherence_installer.generator.templates).

Tests cover:
- Filters, escaping, and strict undefined handling
- Bundled template discovery
- render_to_file and copy_from (async, tmp_path), including missing templates
"""

from __future__ import annotations

import pytest
from jinja2 import TemplatesNotFound, UndefinedError

from coherence_installer.catalog import CONTROLLER_FILES, MAILER_FILES, VIEW_FILES
from coherence_installer.generator.templates import TemplateRenderer

pytestmark = pytest.mark.unit


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def custom_renderer(tmp_path) -> TemplateRenderer:
    (tmp_path / "misc").mkdir()
    (tmp_path / "misc" / "filters.j2").write_text("{{ name | camelize }} {{ mod | underscore }}")
    (tmp_path / "misc" / "raw.j2").write_text("{{ v }}")
    return TemplateRenderer(tmp_path)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class TestEnvironment:
    def test_filters(self, custom_renderer):
        out = custom_renderer.render(
            "misc/filters.j2", {"name": "create_coherence_user", "mod": "MyApp.Repo"}
        )
        assert out == "CreateCoherenceUser my_app/repo"

    def test_no_html_escaping(self, custom_renderer):
        assert custom_renderer.render("misc/raw.j2", {"v": "<%= x %>"}) == "<%= x %>"

    def test_undefined_variable_raises(self, custom_renderer):
        with pytest.raises(UndefinedError):
            custom_renderer.render("misc/raw.j2", {})

    def test_custom_dir_replaces_bundled(self, custom_renderer):
        assert custom_renderer.list_templates() == ["misc/filters.j2", "misc/raw.j2"]


# ---------------------------------------------------------------------------
# Bundled templates
# ---------------------------------------------------------------------------


class TestBundledTemplates:
    def test_every_view_has_a_template(self, renderer):
        available = renderer.list_templates("views/coherence")
        for _, name in VIEW_FILES:
            assert f"views/coherence/{name}.j2" in available

    def test_every_controller_has_a_template(self, renderer):
        available = renderer.list_templates("controllers/coherence")
        for _, name in CONTROLLER_FILES:
            assert f"controllers/coherence/{name}.j2" in available

    def test_mailer_templates(self, renderer):
        available = renderer.list_templates("emails/coherence")
        assert available == sorted(f"emails/coherence/{name}.j2" for name in MAILER_FILES)

    def test_missing_prefix(self, renderer):
        assert renderer.list_templates("does/not/exist") == []

    def test_user_model(self, renderer):
        out = renderer.render(
            "models/coherence/user.ex.j2",
            {"base": "MyApp", "user_schema": "MyApp.User", "user_table_name": "users"},
        )
        assert out.startswith("defmodule MyApp.User do\n")
        assert 'schema "users" do' in out
        assert "use MyApp.Web, :model" in out

    @pytest.mark.parametrize("opts, expected", [(["authenticatable"], False), (["rememberable"], True)])
    def test_session_template_remember_me(self, renderer, opts, expected):
        out = renderer.render("templates/coherence/session/new.html.eex.j2", {"opts": opts})
        assert ('name="remember"' in out) is expected

    def test_custom_template_dir(self, tmp_path):
        (tmp_path / "web").mkdir()
        (tmp_path / "web" / "coherence_web.ex.j2").write_text("custom {{ base }}\n")
        assert TemplateRenderer(tmp_path).render("web/coherence_web.ex.j2", {"base": "X"}) == "custom X\n"


# ---------------------------------------------------------------------------
# File rendering
# ---------------------------------------------------------------------------


class TestRenderToFile:
    @pytest.mark.asyncio
    async def test_creates_parent_dirs(self, renderer, tmp_path):
        out = tmp_path / "deep" / "nested" / "session_view.ex"
        written = await renderer.render_to_file(
            "views/coherence/session_view.ex.j2", out, {"base": "MyApp"}
        )
        assert written == out
        assert out.read_text().startswith("defmodule MyApp.Coherence.SessionView do")

    @pytest.mark.asyncio
    async def test_copy_from_preserves_order(self, renderer, tmp_path):
        outputs = [
            ("session_view.ex", tmp_path / "session_view.ex"),
            ("coherence_view.ex", tmp_path / "coherence_view.ex"),
        ]
        written = await renderer.copy_from("views/coherence", {"base": "MyApp"}, outputs)
        assert written == [path for _, path in outputs]
        assert all(path.is_file() for path in written)

    @pytest.mark.asyncio
    async def test_copy_from_missing_template_writes_nothing(self, renderer, tmp_path):
        outputs = [
            ("session_view.ex", tmp_path / "session_view.ex"),
            ("nope.ex", tmp_path / "nope.ex"),
        ]
        with pytest.raises(TemplatesNotFound) as exc_info:
            await renderer.copy_from("views/coherence", {"base": "MyApp"}, outputs)
        assert exc_info.value.templates == ["views/coherence/nope.ex.j2"]
        assert not (tmp_path / "session_view.ex").exists()
