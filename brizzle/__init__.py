"""
Brizzle - Rails-like generators for Next.js + Drizzle ORM

Parses terse field definitions, maps them onto SQLite, PostgreSQL or MySQL
Drizzle columns and merges the resulting tables into an existing schema file.
"""

__version__ = "0.1.0"

from brizzle.fields import FieldDescriptor, parse_field, parse_fields
from brizzle.dialects import Dialect, build_table, map_type
from brizzle.schema import MergeAction, MergeResult, merge_table, table_exists
from brizzle.config import GeneratorOptions, Project, load_project, reset_project_config
from brizzle.generator import Generator

__all__ = [
    "FieldDescriptor",
    "parse_field",
    "parse_fields",
    "Dialect",
    "build_table",
    "map_type",
    "MergeAction",
    "MergeResult",
    "merge_table",
    "table_exists",
    "GeneratorOptions",
    "Project",
    "load_project",
    "reset_project_config",
    "Generator",
]
