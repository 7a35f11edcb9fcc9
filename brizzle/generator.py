"""
Brizzle Generator - Template-based Drizzle / Next.js file generation

Every command validates its whole input (model name, field list) before the
first read or write, then merges the table into the schema file and renders
the remaining TypeScript files from Jinja2 templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from rich.markup import escape

from brizzle.config import GeneratorOptions, Project
from brizzle.dialects import Dialect, build_table, check_column_names
from brizzle.errors import SchemaCorruptionError, ValidationError
from brizzle.fields import (
    AbstractType,
    FieldDescriptor,
    default_value,
    display_value,
    field_input_type,
    form_data_value,
    parse_fields,
    validate_model_name,
)
from brizzle.files import StatusLog, delete_directory, log, update_file, write_file
from brizzle.naming import (
    ModelContext,
    camel_case,
    humanize,
    kebab_case,
    pascal_case,
    plural,
    singular,
    snake_case,
)
from brizzle.schema import MergeAction, MergeResult, merge_table, table_block


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED FILE TRACKING
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class GeneratedFile:
    """Represents a generated file."""

    path: Path
    template: str | None = None
    written: bool = True  # False when skipped


@dataclass
class GenerationResult:
    """Result of one generator command."""

    files: list[GeneratedFile] = field(default_factory=list)
    merge: MergeResult | None = None

    @property
    def written(self) -> list[Path]:
        return [f.path for f in self.files if f.written]

    @property
    def skipped(self) -> list[Path]:
        return [f.path for f in self.files if not f.written]

    def extend(self, other: "GenerationResult") -> None:
        self.files.extend(other.files)
        if other.merge is not None:
            self.merge = other.merge


class DestroyKind(str, Enum):
    SCAFFOLD = "scaffold"
    RESOURCE = "resource"
    API = "api"


# ═══════════════════════════════════════════════════════════════════════════
# JINJA ENVIRONMENT SETUP
# ═══════════════════════════════════════════════════════════════════════════


def create_jinja_env(templates_dir: Path) -> Environment:
    """Create Jinja2 environment with custom filters."""

    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )

    # String transformation filters
    env.filters["camel_case"] = camel_case
    env.filters["pascal_case"] = pascal_case
    env.filters["snake_case"] = snake_case
    env.filters["kebab_case"] = kebab_case
    env.filters["plural"] = plural
    env.filters["singular"] = singular
    env.filters["humanize"] = humanize

    # Per-field conversion filters
    env.filters["input_type"] = field_input_type
    env.filters["form_data_value"] = form_data_value
    env.filters["display_value"] = display_value
    env.filters["default_value"] = default_value

    return env


# ═══════════════════════════════════════════════════════════════════════════
# GENERATOR
# ═══════════════════════════════════════════════════════════════════════════


class Generator:
    """
    Renders schema, server actions, pages and API routes into a host project.

    The project is passed in rather than detected here, so a Generator can be
    pointed at any directory (the CLI uses the memoised ``load_project()``).
    """

    def __init__(
        self,
        project: Project,
        options: GeneratorOptions | None = None,
        status: StatusLog | None = None,
        templates_dir: Path | None = None,
    ):
        if templates_dir is None:
            templates_dir = Path(__file__).parent / "templates"

        self.project = project
        self.options = options or GeneratorOptions()
        self.status = status or log
        self.templates_dir = templates_dir
        self.env = create_jinja_env(templates_dir)

    @property
    def prefix(self) -> str:
        return escape("[dry-run] ") if self.options.dry_run else ""

    def _render_template(self, template_path: str, context: dict[str, Any]) -> str:
        template = self.env.get_template(template_path)
        return template.render(**context)

    def _write(self, path: Path, template_path: str, context: dict[str, Any]) -> GeneratedFile:
        content = self._render_template(template_path, context)
        written = write_file(path, content, self.options, self.status)
        return GeneratedFile(path=path, template=template_path, written=written)

    def _base_context(self, ctx: ModelContext, uuid: bool, timestamps: bool) -> dict[str, Any]:
        returning = self.project.dialect != Dialect.MYSQL
        return {
            "ctx": ctx,
            "db_import": self.project.config.db_import,
            "schema_import": self.project.config.schema_import,
            "uuid": uuid,
            "id_type": "string" if uuid else "number",
            "timestamps": timestamps,
            "order_column": "createdAt" if timestamps else "id",
            "returning": returning,
            "set_data": "{ ...data, updatedAt: new Date() }" if timestamps else "data",
            "set_body": "{ ...body, updatedAt: new Date() }" if timestamps else "body",
        }

    def _table_traits(self, ctx: ModelContext) -> tuple[bool, bool]:
        """(uuid, timestamps) of the model, read from its schema block when present."""
        uuid, timestamps = self.options.uuid, self.options.timestamps
        schema_path = self.project.schema_path
        if not schema_path.exists():
            return uuid, timestamps

        block = table_block(schema_path.read_text(), ctx.table_name)
        if block is None:
            return uuid, timestamps
        uuid = "randomUUID" in block or "defaultRandom" in block
        timestamps = "createdAt:" in block
        return uuid, timestamps

    def _prepare(self, name: str, raw_fields: list[str] | None = None) -> tuple[ModelContext, list[FieldDescriptor]]:
        validate_model_name(name)
        fields = parse_fields(raw_fields or [])
        check_column_names(fields, self.options.timestamps)
        return ModelContext.from_name(name), fields

    def _next_steps(self, *steps: str) -> None:
        self.status.info("\nNext steps:")
        for number, step in enumerate(steps, start=1):
            self.status.info(f"  {number}. {escape(step)}")

    # ═══════════════════════════════════════════════════════════════════════
    # MODEL
    # ═══════════════════════════════════════════════════════════════════════

    def _merge_model(self, ctx: ModelContext, fields: list[FieldDescriptor]) -> GenerationResult:
        table = build_table(
            ctx,
            fields,
            self.project.dialect,
            uuid=self.options.uuid,
            timestamps=self.options.timestamps,
        )
        schema_path = self.project.schema_path
        existing = schema_path.read_text() if schema_path.exists() else None

        # Merge in memory; nothing is written if this raises
        try:
            merge = merge_table(existing, table, force=self.options.force)
        except SchemaCorruptionError as e:
            raise SchemaCorruptionError(str(e), path=str(schema_path)) from None
        result = GenerationResult(merge=merge)

        if merge.action == MergeAction.SKIPPED:
            self.status.skip(schema_path)
            self.status.info(
                f"[yellow]Model {ctx.pascal_name} already exists in the schema.[/yellow] "
                "Use --force to regenerate it."
            )
            result.files.append(GeneratedFile(path=schema_path, written=False))
            return result

        update_file(schema_path, merge.content, self.options, self.status)
        result.files.append(GeneratedFile(path=schema_path))
        return result

    def model(self, name: str, raw_fields: list[str]) -> GenerationResult:
        """Add (or with force, replace) the model's table in the schema file."""
        ctx, fields = self._prepare(name, raw_fields)
        return self._merge_model(ctx, fields)

    # ═══════════════════════════════════════════════════════════════════════
    # ACTIONS / PAGES / ROUTES
    # ═══════════════════════════════════════════════════════════════════════

    def _actions(self, ctx: ModelContext, uuid: bool, timestamps: bool) -> GenerationResult:
        path = self.project.app_dir / ctx.kebab_plural / "actions.ts"
        context = self._base_context(ctx, uuid, timestamps)
        return GenerationResult(files=[self._write(path, "actions.ts.j2", context)])

    def actions(self, name: str) -> GenerationResult:
        """Server actions for an existing model; id type and ordering follow its table."""
        ctx, _ = self._prepare(name)
        uuid, timestamps = self._table_traits(ctx)
        return self._actions(ctx, uuid, timestamps)

    def _pages(self, ctx: ModelContext, fields: list[FieldDescriptor]) -> GenerationResult:
        base = self.project.app_dir / ctx.kebab_plural
        context = self._base_context(ctx, self.options.uuid, self.options.timestamps)
        item_var = ctx.camel_name if ctx.camel_name != ctx.camel_plural else "record"
        context.update({
            "fields": fields,
            "item_var": item_var,
            "list_var": ctx.camel_plural,
            "id_expr": "id" if self.options.uuid else "Number(id)",
            "needs_new_type": any(f.type == AbstractType.ENUM for f in fields),
        })

        pages = [
            (base / "page.tsx", "pages/index.tsx.j2"),
            (base / "new" / "page.tsx", "pages/new.tsx.j2"),
            (base / "[id]" / "page.tsx", "pages/show.tsx.j2"),
            (base / "[id]" / "edit" / "page.tsx", "pages/edit.tsx.j2"),
        ]
        return GenerationResult(files=[self._write(path, tpl, context) for path, tpl in pages])

    def pages(self, name: str, raw_fields: list[str]) -> GenerationResult:
        ctx, fields = self._prepare(name, raw_fields)
        return self._pages(ctx, fields)

    def _routes(self, ctx: ModelContext) -> GenerationResult:
        base = self.project.app_dir / "api" / ctx.kebab_plural
        context = self._base_context(ctx, self.options.uuid, self.options.timestamps)
        return GenerationResult(files=[
            self._write(base / "route.ts", "api/collection_route.ts.j2", context),
            self._write(base / "[id]" / "route.ts", "api/member_route.ts.j2", context),
        ])

    def routes(self, name: str) -> GenerationResult:
        ctx, _ = self._prepare(name)
        return self._routes(ctx)

    # ═══════════════════════════════════════════════════════════════════════
    # COMPOSITE COMMANDS
    # ═══════════════════════════════════════════════════════════════════════

    def resource(self, name: str, raw_fields: list[str]) -> GenerationResult:
        """Model and server actions, no pages."""
        ctx, fields = self._prepare(name, raw_fields)
        self.status.info(f"\n{self.prefix}Generating resource {ctx.pascal_name}...\n")

        result = self._merge_model(ctx, fields)
        result.extend(self._actions(ctx, self.options.uuid, self.options.timestamps))

        run = self.project.run_command
        self._next_steps(
            f"Run '{run} db:push' to update the database",
            f"Create pages in {self.project.config.app_path}/{ctx.kebab_plural}/",
        )
        return result

    def scaffold(self, name: str, raw_fields: list[str]) -> GenerationResult:
        """Model, server actions and the four CRUD pages."""
        ctx, fields = self._prepare(name, raw_fields)
        self.status.info(f"\n{self.prefix}Scaffolding {ctx.pascal_name}...\n")

        result = self._merge_model(ctx, fields)
        result.extend(self._actions(ctx, self.options.uuid, self.options.timestamps))
        result.extend(self._pages(ctx, fields))

        run = self.project.run_command
        self._next_steps(
            f"Run '{run} db:push' to update the database",
            f"Run '{run} dev' and visit /{ctx.kebab_plural}",
        )
        return result

    def api(self, name: str, raw_fields: list[str]) -> GenerationResult:
        """Model and REST route handlers."""
        ctx, fields = self._prepare(name, raw_fields)
        self.status.info(f"\n{self.prefix}Generating API {ctx.pascal_name}...\n")

        result = self._merge_model(ctx, fields)
        result.extend(self._routes(ctx))

        run = self.project.run_command
        self._next_steps(
            f"Run '{run} db:push' to update the database",
            f"API available at /api/{ctx.kebab_plural}",
        )
        return result

    # ═══════════════════════════════════════════════════════════════════════
    # DESTROY
    # ═══════════════════════════════════════════════════════════════════════

    def destroy_path(self, kind: DestroyKind, name: str) -> Path:
        validate_model_name(name)
        ctx = ModelContext.from_name(name)
        if kind == DestroyKind.API:
            return self.project.app_dir / "api" / ctx.kebab_plural
        return self.project.app_dir / ctx.kebab_plural

    def destroy(self, kind: DestroyKind | str, name: str) -> bool:
        """
        Remove the generated directory of a scaffold, resource or api.

        The schema file is never touched.

        Returns:
            True if the directory existed
        """
        try:
            kind = DestroyKind(kind)
        except ValueError:
            raise ValidationError(
                f'Unknown type "{kind}". Use: scaffold, resource, or api'
            ) from None

        path = self.destroy_path(kind, name)
        ctx = ModelContext.from_name(name)
        label = "API" if kind == DestroyKind.API else kind.value
        self.status.info(f"\n{self.prefix}Destroying {label} {ctx.pascal_name}...\n")

        removed = delete_directory(path, self.options, self.status)

        self.status.info(
            f"\nNote: Schema in {escape(self.project.config.db_path)}/schema.ts was not modified."
        )
        self.status.info("      Remove the table definition manually if needed.")
        return removed
