"""
Brizzle Config - Host project detection

Inspects the working project once per process: directory layout, import alias,
database dialect and package manager. The detection functions are pure over
a root directory; ``load_project`` memoises the result for the CLI and
``reset_project_config`` clears it.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel
from rich.console import Console

from brizzle.dialects import Dialect


console = Console(stderr=True)

DRIZZLE_CONFIG_FILE = "drizzle.config.ts"
SCHEMA_FILE = "schema.ts"

DIALECT_PATTERN = re.compile(r"""dialect:\s*["'](\w+)["']""")
ALIAS_PATTERN = re.compile(r"^(@\w*|~)/")

_JSON_STRING = r'("(?:\\.|[^"\\])*")'
JSON_COMMENT_PATTERN = re.compile(_JSON_STRING + r"|//[^\n]*|/\*[\s\S]*?\*/")
JSON_TRAILING_COMMA_PATTERN = re.compile(_JSON_STRING + r"|,(\s*[}\]])")

DIALECT_ALIASES: dict[str, Dialect] = {
    "postgresql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "pg": Dialect.POSTGRESQL,
    "mysql": Dialect.MYSQL,
    "mysql2": Dialect.MYSQL,
}


class PackageManager(str, Enum):
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"


LOCKFILES: list[tuple[str, PackageManager]] = [
    ("bun.lockb", PackageManager.BUN),
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
]


# ═══════════════════════════════════════════════════════════════════════════
# GENERATOR OPTIONS
# ═══════════════════════════════════════════════════════════════════════════


class GeneratorOptions(BaseModel):
    """Shared command flags"""

    force: bool = False
    dry_run: bool = False
    uuid: bool = False
    timestamps: bool = True


# ═══════════════════════════════════════════════════════════════════════════
# PROJECT CONFIG
# ═══════════════════════════════════════════════════════════════════════════


class ProjectConfig(BaseModel):
    """Layout conventions of the host project"""

    use_src: bool = False
    alias: str = "@"
    db_path: str = "db"
    app_path: str = "app"

    model_config = {"frozen": True}

    @property
    def db_import(self) -> str:
        """Import path for the db client, e.g. ``@/db`` or ``~/lib/db``."""
        return f"{self.alias}/{re.sub(r'^src/', '', self.db_path)}"

    @property
    def schema_import(self) -> str:
        return f"{self.db_import}/schema"


def _strip_json_comments(content: str) -> str:
    # String literals are matched first so "@/*" keys and URLs stay intact
    content = JSON_COMMENT_PATTERN.sub(lambda m: m.group(1) or "", content)
    return JSON_TRAILING_COMMA_PATTERN.sub(lambda m: m.group(1) or m.group(2), content)


def detect_alias(root: Path) -> str:
    """First ``@``/``~`` alias in tsconfig.json compilerOptions.paths."""
    tsconfig_path = root / "tsconfig.json"
    if not tsconfig_path.exists():
        return "@"

    try:
        tsconfig = json.loads(_strip_json_comments(tsconfig_path.read_text()))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "@"

    if not isinstance(tsconfig, dict):
        return "@"
    paths = (tsconfig.get("compilerOptions") or {}).get("paths") or {}
    for key in paths:
        match = ALIAS_PATTERN.match(key)
        if match:
            return match.group(1)
    return "@"


def detect_project_config(root: Path) -> ProjectConfig:
    """Detect src/ usage, import alias and db/app directories under ``root``."""
    use_src = (root / "src" / "app").exists()
    prefix = "src/" if use_src else ""

    candidates = [f"{prefix}{p}" for p in ("db", "lib/db", "server/db")]
    db_path = next((p for p in candidates if (root / p).exists()), candidates[0])

    return ProjectConfig(
        use_src=use_src,
        alias=detect_alias(root),
        db_path=db_path,
        app_path=f"{prefix}app",
    )


def detect_dialect(root: Path, warn: bool = True) -> Dialect:
    """Dialect named in drizzle.config.ts; SQLite-family unless pg/mysql."""
    config_path = root / DRIZZLE_CONFIG_FILE
    if not config_path.exists():
        if warn:
            console.print(
                f"[yellow]Warning:[/yellow] {DRIZZLE_CONFIG_FILE} not found, "
                "defaulting to sqlite dialect"
            )
        return Dialect.SQLITE

    match = DIALECT_PATTERN.search(config_path.read_text())
    if match:
        # turso, libsql, better-sqlite3 ... are all SQLite
        return DIALECT_ALIASES.get(match.group(1), Dialect.SQLITE)
    return Dialect.SQLITE


def detect_package_manager(root: Path) -> PackageManager:
    for lockfile, manager in LOCKFILES:
        if (root / lockfile).exists():
            return manager
    return PackageManager.NPM


def run_command(manager: PackageManager) -> str:
    """Prefix for package.json scripts: ``npm run`` / ``pnpm`` / ``yarn`` / ``bun``."""
    return "npm run" if manager == PackageManager.NPM else manager.value


# ═══════════════════════════════════════════════════════════════════════════
# PROJECT
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Project:
    """Everything the generators need to know about the host project."""

    root: Path
    config: ProjectConfig
    dialect: Dialect
    package_manager: PackageManager = PackageManager.NPM

    @property
    def app_dir(self) -> Path:
        return self.root / self.config.app_path

    @property
    def db_dir(self) -> Path:
        return self.root / self.config.db_path

    @property
    def schema_path(self) -> Path:
        return self.db_dir / SCHEMA_FILE

    @property
    def run_command(self) -> str:
        return run_command(self.package_manager)

    @classmethod
    def detect(cls, root: Path, warn: bool = True) -> "Project":
        root = root.resolve()
        return cls(
            root=root,
            config=detect_project_config(root),
            dialect=detect_dialect(root, warn=warn),
            package_manager=detect_package_manager(root),
        )


@lru_cache(maxsize=None)
def _load_project(root: Path, warn: bool) -> Project:
    return Project.detect(root, warn=warn)


def load_project(root: Path | None = None, warn: bool = True) -> Project:
    """Detect the project at ``root`` (default: cwd), once per process."""
    return _load_project((root or Path.cwd()).resolve(), warn)


def reset_project_config() -> None:
    """Forget memoised detections."""
    _load_project.cache_clear()
