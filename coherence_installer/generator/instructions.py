"""Follow-up instructions shown to the user after an installer run.

Each builder returns a block of text (possibly empty) derived only from the
resolved configuration; the pipeline appends them to
``ResolvedConfig.instructions``.
"""

from __future__ import annotations

import textwrap

from coherence_installer.catalog import Capability
from coherence_installer.options.models import ResolvedConfig

from .config_patcher import PatchResult


def config_instructions(config: ResolvedConfig, result: PatchResult | None, config_file: str) -> str:
    """Show the config block when it was not written to *config_file*."""
    if result is not None and result.applied:
        return ""
    return (
        f"\nThe following should be added to your {config_file} file.\n\n"
        + config.config_block
    )


def router_instructions(config: ResolvedConfig) -> str:
    base = config.base
    namespace = f", {base}" if config.switches.controllers else ""
    return textwrap.dedent(
        f"""
        Add the following to your router.ex file.

        defmodule {base}.Router do
          use {base}.Web, :router
          use Coherence.Router         # Add this

          pipeline :browser do
            plug :accepts, ["html"]
            plug :fetch_session
            plug :fetch_flash
            plug :protect_from_forgery
            plug :put_secure_browser_headers
            plug Coherence.Authentication.Session, login: true  # Add this
          end

          pipeline :public do
            plug :accepts, ["html"]
            plug :fetch_session
            plug :fetch_flash
            plug :protect_from_forgery
            plug :put_secure_browser_headers
            plug Coherence.Authentication.Session               # Add this
          end

          # Add this block
          scope "/"{namespace} do
            pipe_through :public
            coherence_routes :public
          end

          # Add this block
          scope "/"{namespace} do
            pipe_through :browser
            coherence_routes :private
          end

          scope "/", {base} do
            pipe_through :public
            get "/", PageController, :index
          end

          scope "/", {base} do
            pipe_through :browser
            # Add your protected routes here
          end
        end
        """
    )


def schema_instructions(config: ResolvedConfig, model_generated: bool) -> str:
    """Explain how to wire Coherence into a user model the installer did not write."""
    if model_generated:
        return ""
    base = config.base
    schema = config.user_schema
    return textwrap.dedent(
        f"""
        Add the following items to your {schema} model (Phoenix v1.2).

        defmodule {schema} do
          use {base}.Web, :model
          use Coherence.Schema     # Add this

          schema "{config.user_table_name}" do
            field :name, :string
            field :email, :string
            coherence_schema       # Add this

            timestamps()
          end

          def changeset(model, params \\\\ %{{}}) do
            model
            |> cast(params, [:name, :email] ++ coherence_fields)
            |> validate_required([:name, :email])
            |> unique_constraint(:email)
            |> validate_coherence(params)             # Add this
          end
        end
        """
    )


def seeds_instructions(config: ResolvedConfig) -> str:
    if not config.has(Capability.AUTHENTICATABLE):
        return ""
    repo = config.repo
    schema = config.user_schema
    return textwrap.dedent(
        f"""
        You might want to add the following to your priv/repo/seeds.exs file.

        {repo}.delete_all {schema}

        {schema}.changeset(%{schema}{{}}, %{{name: "Test User", email: "testuser@example.com", password: "secret", password_confirmation: "secret"}})
        |> {repo}.insert!
        """
    )


def migrate_instructions(config: ResolvedConfig) -> str:
    if not (config.switches.migrations and config.switches.boilerplate):
        return ""
    return textwrap.dedent(
        """
        Don't forget to run the new migrations and seeds with:
            $ mix ecto.setup
        """
    )


def final_instructions(config: ResolvedConfig, model_generated: bool) -> str:
    """Router, schema, seeds, and migrate instructions in display order."""
    return "".join(
        [
            router_instructions(config),
            schema_instructions(config, model_generated),
            seeds_instructions(config),
            migrate_instructions(config),
        ]
    )
