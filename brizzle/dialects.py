"""
Brizzle Dialects - Per-dialect Drizzle column mapping

Projects each abstract field kind onto the Drizzle column builder, options and
import for SQLite, PostgreSQL and MySQL. The mapping is one lookup table keyed
by ``(AbstractType, Dialect)``; it is checked for totality on import, so a
missing pair fails before anything is generated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from string import Template

from brizzle.errors import MappingError, ValidationError
from brizzle.fields import AbstractType, FieldDescriptor
from brizzle.naming import ModelContext, camel_case, plural, singular, snake_case


# ═══════════════════════════════════════════════════════════════════════════
# DIALECTS
# ═══════════════════════════════════════════════════════════════════════════


class Dialect(str, Enum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


DRIZZLE_MODULES: dict[Dialect, str] = {
    Dialect.SQLITE: "drizzle-orm/sqlite-core",
    Dialect.POSTGRESQL: "drizzle-orm/pg-core",
    Dialect.MYSQL: "drizzle-orm/mysql-core",
}

TABLE_FUNCTIONS: dict[Dialect, str] = {
    Dialect.SQLITE: "sqliteTable",
    Dialect.POSTGRESQL: "pgTable",
    Dialect.MYSQL: "mysqlTable",
}


def drizzle_module(dialect: Dialect) -> str:
    """Module path providing the column builders of ``dialect``."""
    return DRIZZLE_MODULES[dialect]


def table_function(dialect: Dialect) -> str:
    return TABLE_FUNCTIONS[dialect]


# ═══════════════════════════════════════════════════════════════════════════
# COLUMN TYPE TABLE
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ColumnType:
    """
    One cell of the mapping table.

    ``options`` is the raw second argument of the builder call; ``$values``
    inside it is replaced by the enum value list. A ``native_enum`` builder
    declares a named enum type outside the table and is called through it.
    """

    function: str
    options: str | None = None
    native_enum: bool = False


_T = AbstractType
_SQLITE = Dialect.SQLITE
_PG = Dialect.POSTGRESQL
_MYSQL = Dialect.MYSQL

COLUMN_TYPES: dict[tuple[AbstractType, Dialect], ColumnType] = {
    # SQLite: everything is text, integer or real with a mode flag
    (_T.STRING, _SQLITE): ColumnType("text"),
    (_T.TEXT, _SQLITE): ColumnType("text"),
    (_T.INTEGER, _SQLITE): ColumnType("integer"),
    (_T.BIGINT, _SQLITE): ColumnType("integer", '{ mode: "number" }'),
    (_T.BOOLEAN, _SQLITE): ColumnType("integer", '{ mode: "boolean" }'),
    (_T.FLOAT, _SQLITE): ColumnType("real"),
    (_T.DECIMAL, _SQLITE): ColumnType("text"),
    (_T.DATETIME, _SQLITE): ColumnType("integer", '{ mode: "timestamp" }'),
    (_T.DATE, _SQLITE): ColumnType("integer", '{ mode: "timestamp" }'),
    (_T.JSON, _SQLITE): ColumnType("text", '{ mode: "json" }'),
    (_T.UUID, _SQLITE): ColumnType("text"),
    (_T.ENUM, _SQLITE): ColumnType("text", "{ enum: $values }"),
    (_T.REFERENCE, _SQLITE): ColumnType("integer"),
    # PostgreSQL
    (_T.STRING, _PG): ColumnType("text"),
    (_T.TEXT, _PG): ColumnType("text"),
    (_T.INTEGER, _PG): ColumnType("integer"),
    (_T.BIGINT, _PG): ColumnType("bigint", '{ mode: "number" }'),
    (_T.BOOLEAN, _PG): ColumnType("boolean"),
    (_T.FLOAT, _PG): ColumnType("doublePrecision"),
    (_T.DECIMAL, _PG): ColumnType("numeric", "{ precision: 10, scale: 2 }"),
    (_T.DATETIME, _PG): ColumnType("timestamp"),
    (_T.DATE, _PG): ColumnType("date", '{ mode: "date" }'),
    (_T.JSON, _PG): ColumnType("jsonb"),
    (_T.UUID, _PG): ColumnType("uuid"),
    (_T.ENUM, _PG): ColumnType("pgEnum", native_enum=True),
    (_T.REFERENCE, _PG): ColumnType("integer"),
    # MySQL
    (_T.STRING, _MYSQL): ColumnType("varchar", "{ length: 255 }"),
    (_T.TEXT, _MYSQL): ColumnType("text"),
    (_T.INTEGER, _MYSQL): ColumnType("int"),
    (_T.BIGINT, _MYSQL): ColumnType("bigint", '{ mode: "number" }'),
    (_T.BOOLEAN, _MYSQL): ColumnType("boolean"),
    (_T.FLOAT, _MYSQL): ColumnType("double"),
    (_T.DECIMAL, _MYSQL): ColumnType("decimal", "{ precision: 10, scale: 2 }"),
    (_T.DATETIME, _MYSQL): ColumnType("datetime"),
    (_T.DATE, _MYSQL): ColumnType("date"),
    (_T.JSON, _MYSQL): ColumnType("json"),
    (_T.UUID, _MYSQL): ColumnType("varchar", "{ length: 36 }"),
    (_T.ENUM, _MYSQL): ColumnType("mysqlEnum", "$values"),
    (_T.REFERENCE, _MYSQL): ColumnType("int"),
}

# (dialect, uuid) -> (builder, expression)
ID_COLUMNS: dict[tuple[Dialect, bool], tuple[str, str]] = {
    (_SQLITE, False): ("integer", 'integer("id").primaryKey({ autoIncrement: true })'),
    (_SQLITE, True): ("text", 'text("id").primaryKey().$defaultFn(() => crypto.randomUUID())'),
    (_PG, False): ("serial", 'serial("id").primaryKey()'),
    (_PG, True): ("uuid", 'uuid("id").primaryKey().defaultRandom()'),
    (_MYSQL, False): ("int", 'int("id").primaryKey().autoincrement()'),
    (_MYSQL, True): (
        "varchar",
        'varchar("id", { length: 36 }).primaryKey().$defaultFn(() => crypto.randomUUID())',
    ),
}

# dialect -> (builder, expression template over $column)
TIMESTAMP_COLUMNS: dict[Dialect, tuple[str, str]] = {
    _SQLITE: (
        "integer",
        'integer("$column", { mode: "timestamp" }).notNull().$$defaultFn(() => new Date())',
    ),
    _PG: ("timestamp", 'timestamp("$column").notNull().defaultNow()'),
    _MYSQL: ("datetime", 'datetime("$column").notNull().$$defaultFn(() => new Date())'),
}

TIMESTAMP_FIELDS = ("createdAt", "updatedAt")

# Column type annotating a self-referencing foreign key callback
ANY_COLUMN_TYPES: dict[Dialect, str] = {
    _SQLITE: "AnySQLiteColumn",
    _PG: "AnyPgColumn",
    _MYSQL: "AnyMySqlColumn",
}


def missing_mappings() -> list[str]:
    """Every (kind, dialect) cell or per-dialect entry that has no mapping."""
    missing: list[str] = []
    for dialect in Dialect:
        for kind in AbstractType:
            if (kind, dialect) not in COLUMN_TYPES:
                missing.append(f"{kind.value}/{dialect.value}")
        for use_uuid in (False, True):
            if (dialect, use_uuid) not in ID_COLUMNS:
                missing.append(f"id(uuid={use_uuid})/{dialect.value}")
        if dialect not in TIMESTAMP_COLUMNS:
            missing.append(f"timestamps/{dialect.value}")
        if dialect not in DRIZZLE_MODULES or dialect not in TABLE_FUNCTIONS:
            missing.append(f"module/{dialect.value}")
    return missing


def check_mappings() -> None:
    """Raise MappingError unless the mapping tables are total."""
    missing = missing_mappings()
    if missing:
        raise MappingError(f"Unmapped column types: {', '.join(missing)}")


# ═══════════════════════════════════════════════════════════════════════════
# COLUMN SPECS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ColumnSpec:
    """A rendered column plus what it needs from the dialect module."""

    key: str
    expression: str
    imports: tuple[str, ...]
    module: str
    declarations: tuple[str, ...] = ()

    def render(self) -> str:
        return f"  {self.key}: {self.expression}"


def _enum_literal(values: list[str] | None) -> str:
    return json.dumps(values or [], ensure_ascii=False)


def reference_variable(target: str) -> str:
    """Exported table variable of a referenced model (``user`` -> ``users``)."""
    return camel_case(plural(singular(target)))


def map_type(
    descriptor: FieldDescriptor,
    dialect: Dialect,
    table_name: str = "",
) -> ColumnSpec:
    """
    Resolve a field to its column expression under ``dialect``.

    ``table_name`` names native enum types (``<table>_<column>``).

    Raises:
        MappingError: if the (type, dialect) pair has no mapping.
    """
    try:
        column_type = COLUMN_TYPES[(descriptor.type, dialect)]
    except KeyError:
        raise MappingError(
            f"No column mapping for type '{descriptor.type.value}' "
            f"under dialect '{dialect.value}'"
        ) from None

    column = snake_case(descriptor.name)
    declarations: tuple[str, ...] = ()

    if column_type.native_enum:
        enum_name = f"{table_name}_{column}" if table_name else column
        enum_var = camel_case(enum_name) + "Enum"
        declarations = (
            f"export const {enum_var} = {column_type.function}"
            f'("{enum_name}", {_enum_literal(descriptor.enum_values)});',
        )
        expression = f'{enum_var}("{column}")'
    else:
        args = [f'"{column}"']
        if column_type.options:
            args.append(
                Template(column_type.options).substitute(
                    values=_enum_literal(descriptor.enum_values)
                )
            )
        expression = f"{column_type.function}({', '.join(args)})"

    if not descriptor.nullable:
        expression += ".notNull()"
    if descriptor.unique:
        expression += ".unique()"
    imports = (column_type.function,)
    if descriptor.is_reference:
        target = reference_variable(descriptor.reference_target)
        if table_name and target == camel_case(table_name):
            # Self-reference: the callback needs an explicit return type
            any_column = ANY_COLUMN_TYPES[dialect]
            expression += f".references((): {any_column} => {target}.id)"
            imports += (any_column,)
        else:
            expression += f".references(() => {target}.id)"

    return ColumnSpec(
        key=descriptor.name,
        expression=expression,
        imports=imports,
        module=DRIZZLE_MODULES[dialect],
        declarations=declarations,
    )


def id_column(dialect: Dialect, uuid: bool = False) -> ColumnSpec:
    """Primary key column: auto-increment integer, or generated UUID."""
    try:
        function, expression = ID_COLUMNS[(dialect, uuid)]
    except KeyError:
        raise MappingError(f"No id column for dialect '{dialect.value}' (uuid={uuid})") from None
    return ColumnSpec(
        key="id",
        expression=expression,
        imports=(function,),
        module=DRIZZLE_MODULES[dialect],
    )


def timestamp_columns(dialect: Dialect) -> list[ColumnSpec]:
    """createdAt / updatedAt columns defaulting to the insert time."""
    try:
        function, template = TIMESTAMP_COLUMNS[dialect]
    except KeyError:
        raise MappingError(f"No timestamp columns for dialect '{dialect.value}'") from None
    return [
        ColumnSpec(
            key=name,
            expression=Template(template).substitute(column=snake_case(name)),
            imports=(function,),
            module=DRIZZLE_MODULES[dialect],
        )
        for name in TIMESTAMP_FIELDS
    ]


# ═══════════════════════════════════════════════════════════════════════════
# TABLE DEFINITION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class TableDefinition:
    """One table block of the generated schema file."""

    name: str
    variable: str
    dialect: Dialect
    columns: list[ColumnSpec] = field(default_factory=list)

    @property
    def table_function(self) -> str:
        return TABLE_FUNCTIONS[self.dialect]

    @property
    def module(self) -> str:
        return DRIZZLE_MODULES[self.dialect]

    def required_imports(self) -> dict[str, list[str]]:
        """Symbols by module path: table function first, then column order."""
        imports: dict[str, list[str]] = {self.module: [self.table_function]}
        for column in self.columns:
            symbols = imports.setdefault(column.module, [])
            for symbol in column.imports:
                if symbol not in symbols:
                    symbols.append(symbol)
        return imports

    def declarations(self) -> list[str]:
        return [d for column in self.columns for d in column.declarations]

    def render_block(self) -> str:
        columns = ",\n".join(column.render() for column in self.columns)
        return (
            f'export const {self.variable} = {self.table_function}("{self.name}", {{\n'
            f"{columns},\n"
            f"}});"
        )

    def render(self) -> str:
        """Enum declarations (if any) followed by the table block."""
        declarations = self.declarations()
        if declarations:
            return "\n".join(declarations) + "\n\n" + self.render_block()
        return self.render_block()


def check_column_names(fields: list[FieldDescriptor], timestamps: bool = True) -> None:
    """
    Reject fields that would shadow a generated column.

    ``id`` is always generated; ``createdAt``/``updatedAt`` only with
    timestamps on.

    Raises:
        ValidationError: naming the first clashing field.
    """
    for descriptor in fields:
        if descriptor.name == "id":
            raise ValidationError(
                'Field name "id" is reserved: every table gets a generated id column '
                "(use --uuid for a UUID primary key)."
            )
        if timestamps and descriptor.name in TIMESTAMP_FIELDS:
            raise ValidationError(
                f'Field name "{descriptor.name}" is reserved: timestamps are generated '
                "(use --no-timestamps to define it yourself)."
            )


def build_table(
    ctx: ModelContext,
    fields: list[FieldDescriptor],
    dialect: Dialect,
    uuid: bool = False,
    timestamps: bool = True,
) -> TableDefinition:
    """
    Assemble id, field and timestamp columns for a model.

    Raises:
        ValidationError: if a field clashes with a generated column.
    """
    check_column_names(fields, timestamps)
    columns = [id_column(dialect, uuid)]
    columns.extend(map_type(f, dialect, ctx.table_name) for f in fields)
    if timestamps:
        columns.extend(timestamp_columns(dialect))
    return TableDefinition(
        name=ctx.table_name,
        variable=ctx.camel_plural,
        dialect=dialect,
        columns=columns,
    )


check_mappings()
