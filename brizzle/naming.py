"""
Brizzle Naming - Casing and inflection helpers

Every template and column name is derived from a single model name through
ModelContext, so the schema variable, the route directory and the page
component always agree.
"""

from __future__ import annotations

import re

from pydantic import BaseModel


# ═══════════════════════════════════════════════════════════════════════════
# CASE CONVERSION
# ═══════════════════════════════════════════════════════════════════════════


def _words(s: str) -> list[str]:
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", s)
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1 \2", s)
    return re.sub(r"[-_\s]+", " ", s).split()


def camel_case(s: str) -> str:
    """Convert to camelCase. Handles PascalCase input correctly."""
    parts = _words(s)
    if not parts:
        return ""
    return parts[0].lower() + "".join(p[0].upper() + p[1:] for p in parts[1:])


def pascal_case(s: str) -> str:
    """Convert to PascalCase."""
    # Use upper on first char only, preserve rest
    return "".join(p[0].upper() + p[1:] for p in _words(s))


def snake_case(s: str) -> str:
    """Convert to snake_case."""
    return "_".join(p.lower() for p in _words(s))


def kebab_case(s: str) -> str:
    """Convert to kebab-case."""
    return "-".join(p.lower() for p in _words(s))


def humanize(s: str) -> str:
    """Label text: ``createdAt`` -> ``Created At``, ``BlogPosts`` -> ``Blog Posts``."""
    return " ".join(p[0].upper() + p[1:] for p in _words(s))


# ═══════════════════════════════════════════════════════════════════════════
# INFLECTION
# ═══════════════════════════════════════════════════════════════════════════


IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
}
IRREGULAR_SINGULARS = {v: k for k, v in IRREGULAR_PLURALS.items()}

UNCOUNTABLE = {"equipment", "information", "news", "series", "species", "sheep", "fish", "data"}


def _split_last_word(s: str) -> tuple[str, str]:
    match = re.search(r"[A-Z][a-z0-9]*$", s)
    if match and match.start() > 0:
        return s[: match.start()], s[match.start():]
    return "", s


def _match_case(source: str, word: str) -> str:
    if source[:1].isupper():
        return word[0].upper() + word[1:]
    return word


def plural(s: str) -> str:
    """English pluralization of the last word of a (camel-cased) name."""
    head, word = _split_last_word(s)
    lower = word.lower()

    if not lower or lower in UNCOUNTABLE or lower in IRREGULAR_SINGULARS:
        return s
    if lower in IRREGULAR_PLURALS:
        return head + _match_case(word, IRREGULAR_PLURALS[lower])
    if re.search(r"[^aeiou]y$", lower):
        return head + word[:-1] + "ies"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return head + word + "es"
    return head + word + "s"


def singular(s: str) -> str:
    """English singularization of the last word of a (camel-cased) name."""
    head, word = _split_last_word(s)
    lower = word.lower()

    if not lower or lower in UNCOUNTABLE or lower in IRREGULAR_PLURALS:
        return s
    if lower in IRREGULAR_SINGULARS:
        return head + _match_case(word, IRREGULAR_SINGULARS[lower])
    if lower.endswith("ies") and len(lower) > 3:
        return head + word[:-3] + "y"
    if lower.endswith("ouses"):
        return head + word[:-1]
    if re.search(r"(ss|x|z|ch|sh|us)es$", lower):
        return head + word[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return head + word[:-1]
    return s


def escape_string(s: str) -> str:
    """Escape a value for a double-quoted TypeScript string literal."""
    return s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


# ═══════════════════════════════════════════════════════════════════════════
# MODEL CONTEXT
# ═══════════════════════════════════════════════════════════════════════════


class ModelContext(BaseModel):
    """All naming variants of one model, as used by the templates."""

    name: str
    singular_name: str
    plural_name: str
    pascal_name: str
    pascal_plural: str
    camel_name: str
    camel_plural: str
    snake_name: str
    snake_plural: str
    kebab_name: str
    kebab_plural: str
    table_name: str

    model_config = {"frozen": True}

    @classmethod
    def from_name(cls, name: str) -> "ModelContext":
        singular_name = singular(name)
        plural_name = plural(singular_name)
        return cls(
            name=name,
            singular_name=singular_name,
            plural_name=plural_name,
            pascal_name=pascal_case(singular_name),
            pascal_plural=pascal_case(plural_name),
            camel_name=camel_case(singular_name),
            camel_plural=camel_case(plural_name),
            snake_name=snake_case(singular_name),
            snake_plural=snake_case(plural_name),
            kebab_name=kebab_case(singular_name),
            kebab_plural=kebab_case(plural_name),
            table_name=snake_case(plural_name),
        )
