"""
Brizzle Schema - Idempotent merging into an existing Drizzle schema file

The schema file is generator-authored, so it is read with a closed set of
patterns instead of a TypeScript parser: named import statements, and table
blocks of the form ``export const <var> = <tableFn>("<name>", ...);``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from brizzle.dialects import TABLE_FUNCTIONS, TableDefinition
from brizzle.errors import SchemaCorruptionError


IMPORT_PATTERN = re.compile(
    r"""^[ \t]*import\s*\{([^}]*)\}\s*from\s*["']([^"']+)["'];?[ \t]*\n?""",
    re.MULTILINE,
)

_TABLE_FUNCTION_ALTERNATION = "|".join(sorted(TABLE_FUNCTIONS.values()))

TABLE_CALL_PATTERN = re.compile(
    rf"""(?:{_TABLE_FUNCTION_ALTERNATION})\s*\(\s*["'`]([^"'`]+)["'`]"""
)

_BRACKETS = {"(": ")", "[": "]", "{": "}"}

# String literals first, so comment markers inside them are left alone
LEXEME_PATTERN = re.compile(
    r"""("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"""
    r"""|(//[^\n]*|/\*[\s\S]*?\*/)"""
)

HEADER_PATTERN = re.compile(r"\A(?:[ \t]*(?://[^\n]*|/\*[\s\S]*?\*/)?[ \t]*(?:\n|\Z))*")


class MergeAction(str, Enum):
    CREATED = "created"
    APPENDED = "appended"
    REPLACED = "replaced"
    SKIPPED = "skipped"


@dataclass
class MergeResult:
    """Full new file content and what the merge did."""

    content: str
    action: MergeAction

    @property
    def changed(self) -> bool:
        return self.action != MergeAction.SKIPPED


@dataclass
class SchemaSource:
    """The two facts extracted from a schema file."""

    imports: dict[str, list[str]] = field(default_factory=dict)
    tables: list[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# EXTRACTION
# ═══════════════════════════════════════════════════════════════════════════


def mask_comments(source: str) -> str:
    """Blank out comments, keeping every offset and line break in place."""
    return LEXEME_PATTERN.sub(
        lambda m: m.group(1) or re.sub(r"[^\n]", " ", m.group(2)), source
    )


def extract_imports(source: str) -> dict[str, list[str]]:
    """Named imports grouped by module path, symbols in first-seen order."""
    imports: dict[str, list[str]] = {}
    for match in IMPORT_PATTERN.finditer(source):
        symbols = imports.setdefault(match.group(2), [])
        for symbol in match.group(1).split(","):
            symbol = " ".join(symbol.split())
            if symbol and symbol not in symbols:
                symbols.append(symbol)
    return imports


def table_names(source: str) -> list[str]:
    """Declared table names, in declaration order, across all dialects."""
    return [m.group(1) for m in TABLE_CALL_PATTERN.finditer(mask_comments(source))]


def parse_schema(source: str) -> SchemaSource:
    return SchemaSource(imports=extract_imports(source), tables=table_names(source))


def table_exists(source: str, table_name: str) -> bool:
    """True if any dialect's table function declares ``table_name``."""
    pattern = re.compile(
        rf"""(?:{_TABLE_FUNCTION_ALTERNATION})\s*\(\s*["'`]{re.escape(table_name)}["'`]"""
    )
    return pattern.search(mask_comments(source)) is not None


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════


def merge_imports(
    existing: dict[str, list[str]],
    required: dict[str, list[str]],
) -> dict[str, list[str]]:
    """Union per module: existing symbols first, then new ones in required order."""
    merged = {module: list(symbols) for module, symbols in existing.items()}
    for module, symbols in required.items():
        target = merged.setdefault(module, [])
        for symbol in symbols:
            if symbol not in target:
                target.append(symbol)
    return merged


def render_imports(imports: dict[str, list[str]]) -> str:
    return "\n".join(
        f'import {{ {", ".join(symbols)} }} from "{module}";'
        for module, symbols in imports.items()
        if symbols
    )


def strip_imports(source: str) -> str:
    return IMPORT_PATTERN.sub("", source)


# ═══════════════════════════════════════════════════════════════════════════
# BLOCK LOCATION
# ═══════════════════════════════════════════════════════════════════════════


def _skip_string(source: str, index: int) -> int:
    quote = source[index]
    index += 1
    while index < len(source):
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        if char == "\n" and quote != "`":
            break
        index += 1
    raise SchemaCorruptionError("unterminated string literal in schema source")


def find_block_end(source: str, open_index: int) -> int:
    """
    Index just past the bracket matching ``source[open_index]``.

    String literals and comments are skipped. Consumes a trailing ``;`` and
    the end of the line.

    Raises:
        SchemaCorruptionError: if the end of input is reached first.
    """
    stack: list[str] = []
    index = open_index
    length = len(source)

    while index < length:
        char = source[index]
        if char in "\"'`":
            index = _skip_string(source, index)
            continue
        if source.startswith("//", index):
            newline = source.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if source.startswith("/*", index):
            close = source.find("*/", index + 2)
            if close == -1:
                raise SchemaCorruptionError("unterminated comment in schema source")
            index = close + 2
            continue
        if char in _BRACKETS:
            stack.append(_BRACKETS[char])
        elif char in ")]}":
            if not stack or stack.pop() != char:
                raise SchemaCorruptionError(f"unbalanced '{char}' in schema source")
            if not stack:
                return _consume_terminator(source, index + 1)
        index += 1

    raise SchemaCorruptionError("unterminated block in schema source")


def _consume_terminator(source: str, index: int) -> int:
    match = re.compile(r"[ \t]*;?[ \t]*\n?").match(source, index)
    return match.end() if match else index


def _declaration_pattern(table_name: str) -> re.Pattern[str]:
    return re.compile(
        rf"""^[ \t]*(?:export\s+)?const\s+\w+\s*=\s*"""
        rf"""(?:{_TABLE_FUNCTION_ALTERNATION})\s*(\()\s*["'`]{re.escape(table_name)}["'`]""",
        re.MULTILINE,
    )


def _remove_enum_declaration(source: str, variable: str) -> str:
    pattern = re.compile(
        rf"""^[ \t]*(?:export\s+)?const\s+{re.escape(variable)}\s*=\s*\w*Enum\s*(\()""",
        re.MULTILINE,
    )
    match = pattern.search(source)
    if match is None:
        return source
    end = find_block_end(source, match.start(1))
    remaining = source[: match.start()] + source[end:]
    # Keep the declaration while another table still uses it
    if re.search(rf"\b{re.escape(variable)}\b", remaining):
        return source
    return remaining


def _locate_table(source: str, table_name: str) -> tuple[int, int] | None:
    if not table_exists(source, table_name):
        return None

    match = _declaration_pattern(table_name).search(mask_comments(source))
    if match is None:
        raise SchemaCorruptionError(
            f'table "{table_name}" is declared but its block could not be located'
        )
    return match.start(), find_block_end(source, match.start(1))


def table_block(source: str, table_name: str) -> str | None:
    """Source text of the block declaring ``table_name``, if any."""
    span = _locate_table(source, table_name)
    if span is None:
        return None
    return source[span[0]:span[1]]


def remove_table(source: str, table_name: str) -> str:
    """
    Remove the block declaring ``table_name``, with enum declarations that
    only it referenced. Imports are left untouched.

    Raises:
        SchemaCorruptionError: if the table is declared but its block cannot
            be delimited.
    """
    span = _locate_table(source, table_name)
    if span is None:
        return source

    start, end = span
    block = source[start:end]
    result = source[:start] + source[end:]

    for variable in dict.fromkeys(re.findall(r"\b(\w+Enum)\s*\(", block)):
        result = _remove_enum_declaration(result, variable)

    return re.sub(r"\n{3,}", "\n\n", result)


# ═══════════════════════════════════════════════════════════════════════════
# MERGE
# ═══════════════════════════════════════════════════════════════════════════


def merge_table(
    existing: str | None,
    table: TableDefinition,
    force: bool = False,
) -> MergeResult:
    """
    Integrate ``table`` into the schema source ``existing``.

    - no existing source: fresh file (imports + block)
    - table absent: merged import block, block appended
    - table present: unchanged (skipped) unless ``force``, which replaces it

    Imports only grow; symbols freed by a replaced block are not pruned.
    """
    required = table.required_imports()

    if existing is None or not existing.strip():
        content = f"{render_imports(required)}\n\n{table.render()}\n"
        return MergeResult(content=content, action=MergeAction.CREATED)

    header = HEADER_PATTERN.match(existing).group()
    if table_exists(existing, table.name):
        if not force:
            return MergeResult(content=existing, action=MergeAction.SKIPPED)
        source = remove_table(existing[len(header):], table.name)
        action = MergeAction.REPLACED
    else:
        source = existing[len(header):]
        action = MergeAction.APPENDED

    imports = merge_imports(extract_imports(source), required)
    body = strip_imports(source).strip()

    # A leading comment block stays above the imports
    parts = [header.strip()] if header.strip() else []
    parts.append(render_imports(imports))
    if body:
        parts.append(body)
    parts.append(table.render())

    return MergeResult(content="\n\n".join(parts) + "\n", action=action)
