"""
Brizzle CLI - Rails-like generators for Next.js + Drizzle

Usage:
    brizzle model <name> [fields...]
    brizzle scaffold <name> [fields...]
    brizzle destroy <scaffold|resource|api> <name>
    brizzle init [--dialect D --driver X]
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from brizzle.config import GeneratorOptions, console, load_project
from brizzle.errors import BrizzleError, ValidationError
from brizzle.generator import DestroyKind, Generator
from brizzle.init import generate_init

app = typer.Typer(
    name="brizzle",
    help="Rails-like generators for Next.js + Drizzle",
    add_completion=False,
)

FIELD_HELP = "Field definitions: name[?][:type[?]][:unique], e.g. title:string body:text? status:enum:draft,published"

ForceOption = typer.Option(False, "--force", "-f", help="Overwrite existing files")
DryRunOption = typer.Option(False, "--dry-run", "-n", help="Preview changes without writing files")
UuidOption = typer.Option(False, "--uuid", "-u", help="Use UUID for primary key instead of auto-increment")
TimestampsOption = typer.Option(True, "--timestamps/--no-timestamps", help="Add createdAt/updatedAt fields")


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(1)


def _generator(force: bool, dry_run: bool, uuid: bool = False, timestamps: bool = True) -> Generator:
    options = GeneratorOptions(force=force, dry_run=dry_run, uuid=uuid, timestamps=timestamps)
    return Generator(load_project(), options)


@app.command()
def model(
    name: str = typer.Argument(..., help="Model name, e.g. post"),
    fields: Optional[List[str]] = typer.Argument(None, help=FIELD_HELP),
    force: bool = ForceOption,
    dry_run: bool = DryRunOption,
    uuid: bool = UuidOption,
    timestamps: bool = TimestampsOption,
) -> None:
    """
    Generate a Drizzle schema model.

    Example: brizzle model order total:decimal status:enum:pending,paid,shipped
    """
    try:
        _generator(force, dry_run, uuid, timestamps).model(name, fields or [])
    except (BrizzleError, OSError) as e:
        _fail(e)


@app.command()
def actions(
    name: str = typer.Argument(..., help="Existing model name"),
    force: bool = ForceOption,
    dry_run: bool = DryRunOption,
) -> None:
    """Generate server actions for an existing model."""
    try:
        _generator(force, dry_run).actions(name)
    except (BrizzleError, OSError) as e:
        _fail(e)


@app.command()
def resource(
    name: str = typer.Argument(..., help="Model name, e.g. session"),
    fields: Optional[List[str]] = typer.Argument(None, help=FIELD_HELP),
    force: bool = ForceOption,
    dry_run: bool = DryRunOption,
    uuid: bool = UuidOption,
    timestamps: bool = TimestampsOption,
) -> None:
    """Generate model and actions (no views)."""
    try:
        _generator(force, dry_run, uuid, timestamps).resource(name, fields or [])
    except (BrizzleError, OSError) as e:
        _fail(e)


@app.command()
def scaffold(
    name: str = typer.Argument(..., help="Model name, e.g. post"),
    fields: Optional[List[str]] = typer.Argument(None, help=FIELD_HELP),
    force: bool = ForceOption,
    dry_run: bool = DryRunOption,
    uuid: bool = UuidOption,
    timestamps: bool = TimestampsOption,
) -> None:
    """
    Generate model, actions, and pages (full CRUD).

    Example: brizzle scaffold post title:string body:text published:boolean
    """
    try:
        _generator(force, dry_run, uuid, timestamps).scaffold(name, fields or [])
    except (BrizzleError, OSError) as e:
        _fail(e)


@app.command()
def api(
    name: str = typer.Argument(..., help="Model name, e.g. product"),
    fields: Optional[List[str]] = typer.Argument(None, help=FIELD_HELP),
    force: bool = ForceOption,
    dry_run: bool = DryRunOption,
    uuid: bool = UuidOption,
    timestamps: bool = TimestampsOption,
) -> None:
    """Generate model and API route handlers (REST)."""
    try:
        _generator(force, dry_run, uuid, timestamps).api(name, fields or [])
    except (BrizzleError, OSError) as e:
        _fail(e)


@app.command()
def destroy(
    kind: str = typer.Argument(..., help="scaffold, resource or api"),
    name: str = typer.Argument(..., help="Model name"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Preview changes without deleting files"),
) -> None:
    """
    Remove generated files (scaffold, resource, api).

    The schema is left untouched.
    """
    try:
        generator = _generator(force, dry_run)
        try:
            destroy_kind = DestroyKind(kind)
        except ValueError:
            raise ValidationError(f'Unknown type "{kind}". Use: scaffold, resource, or api') from None

        path = generator.destroy_path(destroy_kind, name)
        if not force and not dry_run and path.exists():
            if not typer.confirm(f"Remove {path}?", default=False):
                rprint("Aborted.")
                raise typer.Exit(0)

        generator.destroy(destroy_kind, name)
    except (BrizzleError, OSError) as e:
        _fail(e)


# Rails-style short alias
app.command(name="d", hidden=True)(destroy)


@app.command()
def config() -> None:
    """Show detected project configuration."""
    project = load_project()
    cfg = project.config

    table = Table(title="Detected project configuration")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    structure = "src/ (e.g., src/app/, src/db/)" if cfg.use_src else "root (e.g., app/, db/)"
    table.add_row("Project structure", structure)
    table.add_row("Path alias", f"{cfg.alias}/")
    table.add_row("App directory", f"{cfg.app_path}/")
    table.add_row("DB directory", f"{cfg.db_path}/")
    table.add_row("Database dialect", project.dialect.value)
    table.add_row("Package manager", project.package_manager.value)
    table.add_row("DB import", cfg.db_import)
    table.add_row("Schema import", cfg.schema_import)

    rprint(table)


@app.command()
def init(
    dialect: Optional[str] = typer.Option(None, "--dialect", help="sqlite, postgresql or mysql"),
    driver: Optional[str] = typer.Option(None, "--driver", help="Database driver, e.g. better-sqlite3, postgres, mysql2"),
    install: bool = typer.Option(True, "--install/--no-install", help="Install dependencies"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files without prompting"),
    dry_run: bool = DryRunOption,
) -> None:
    """
    Initialize Drizzle ORM in the current project.

    Interactive unless both --dialect and --driver are given.
    """
    try:
        generate_init(
            Path.cwd(),
            dialect=dialect,
            driver=driver,
            install=install,
            force=force,
            dry_run=dry_run,
        )
    except (BrizzleError, OSError) as e:
        _fail(e)


@app.command()
def version() -> None:
    """Show version."""
    from brizzle import __version__
    rprint(f"brizzle {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
