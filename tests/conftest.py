"""
tests/conftest.py
Shared fixtures for the brizzle test suite.

Filesystem tests run against real files inside pytest's tmp_path; the
working directory is moved there so status lines print short relative paths.
"""

from __future__ import annotations

import io
import json
import pathlib
from typing import Callable

import pytest
from rich.console import Console

from brizzle.config import GeneratorOptions, Project, ProjectConfig, reset_project_config
from brizzle.dialects import Dialect
from brizzle.files import StatusLog
from brizzle.generator import Generator


# ---------------------------------------------------------------------------
# Process-wide state
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_config():
    """Every test starts (and ends) with an empty detection memo."""
    reset_project_config()
    yield
    reset_project_config()


# ---------------------------------------------------------------------------
# Output capture
# ---------------------------------------------------------------------------


@pytest.fixture()
def status() -> StatusLog:
    """A StatusLog writing to an in-memory buffer (read it with ``output(status)``)."""
    console = Console(file=io.StringIO(), width=200, highlight=False, color_system=None)
    return StatusLog(console)


def output(status: StatusLog) -> str:
    return status.console.file.getvalue()


# ---------------------------------------------------------------------------
# Host project layouts
# ---------------------------------------------------------------------------


@pytest.fixture()
def project_dir(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """An empty Next.js-like project root, also the cwd."""
    (tmp_path / "package.json").write_text(json.dumps({"name": "app", "scripts": {"dev": "next dev"}}))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def make_project(project_dir: pathlib.Path) -> Callable[..., Project]:
    def _make(dialect: Dialect = Dialect.SQLITE, **config) -> Project:
        return Project(root=project_dir, config=ProjectConfig(**config), dialect=dialect)

    return _make


@pytest.fixture()
def make_generator(make_project, status) -> Callable[..., Generator]:
    def _make(dialect: Dialect = Dialect.SQLITE, **options) -> Generator:
        return Generator(make_project(dialect), GeneratorOptions(**options), status=status)

    return _make


def write_drizzle_config(root: pathlib.Path, dialect: str) -> None:
    (root / "drizzle.config.ts").write_text(
        'import { defineConfig } from "drizzle-kit";\n\n'
        "export default defineConfig({\n"
        '  schema: "./db/schema.ts",\n'
        f'  dialect: "{dialect}",\n'
        "});\n"
    )
