"""
tests/test_cli.py
End-to-end tests of the brizzle command line through typer's CliRunner.
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from brizzle import __version__
from brizzle.cli import app

from conftest import write_drizzle_config


runner = CliRunner()


@pytest.fixture()
def project(project_dir):
    write_drizzle_config(project_dir, "postgresql")
    return project_dir


def test_model_command(project):
    result = runner.invoke(app, ["model", "post", "title", "body:text?"])
    assert result.exit_code == 0, result.output

    schema = (project / "db" / "schema.ts").read_text()
    assert 'export const posts = pgTable("posts", {' in schema
    assert 'body: text("body"),' in schema


def test_invalid_field_exits_with_error(project):
    result = runner.invoke(app, ["scaffold", "post", "title:money"])
    assert result.exit_code == 1
    assert 'Error: Invalid field type "money"' in result.output
    assert not (project / "db").exists()


def test_scaffold_dry_run(project):
    result = runner.invoke(app, ["scaffold", "post", "title", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "[dry-run] Scaffolding Post..." in result.output
    assert "would create" in result.output
    assert not (project / "app").exists()


def test_uuid_without_timestamps(project):
    result = runner.invoke(app, ["resource", "token", "value", "--uuid", "--no-timestamps"])
    assert result.exit_code == 0, result.output
    schema = (project / "db" / "schema.ts").read_text()
    assert 'uuid("id").primaryKey().defaultRandom()' in schema
    assert "createdAt" not in schema


def test_destroy_alias_dry_run(project):
    runner.invoke(app, ["api", "product", "name"])
    result = runner.invoke(app, ["d", "api", "product", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "would remove" in result.output
    assert (project / "app" / "api" / "products").exists()


def test_destroy_asks_for_confirmation(project):
    runner.invoke(app, ["scaffold", "post", "title"])

    result = runner.invoke(app, ["destroy", "scaffold", "post"], input="n\n")
    assert result.exit_code == 0
    assert "Aborted." in result.output
    assert (project / "app" / "posts").exists()

    result = runner.invoke(app, ["destroy", "scaffold", "post"], input="y\n")
    assert result.exit_code == 0, result.output
    assert not (project / "app" / "posts").exists()


def test_destroy_unknown_kind(project):
    result = runner.invoke(app, ["destroy", "model", "post"])
    assert result.exit_code == 1
    assert 'Unknown type "model"' in result.output


def test_config_command(project):
    (project / "src" / "app").mkdir(parents=True)
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0, result.output
    assert "Detected project configuration" in result.output
    assert "postgresql" in result.output
    assert "@/db/schema" in result.output


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"brizzle {__version__}" in result.output


def test_init_non_interactive(project_dir):
    result = runner.invoke(app, ["init", "--dialect", "sqlite", "--driver", "better-sqlite3", "--no-install"])
    assert result.exit_code == 0, result.output
    assert (project_dir / "drizzle.config.ts").exists()
    assert (project_dir / "db" / "index.ts").exists()
    assert "db:push" in json.loads((project_dir / "package.json").read_text())["scripts"]


def test_init_rejects_incompatible_driver(project_dir):
    result = runner.invoke(app, ["init", "--dialect", "mysql", "--driver", "pg", "--no-install"])
    assert result.exit_code == 1
    assert "not compatible" in result.output
