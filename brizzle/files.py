"""
Brizzle Files - File writes with force / dry-run semantics and status lines
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from brizzle.config import GeneratorOptions


# label -> colour; labels are right-aligned to the widest one
STATUS_STYLES: dict[str, str] = {
    "create": "green",
    "force": "yellow",
    "skip": "yellow",
    "update": "cyan",
    "remove": "red",
    "not found": "yellow",
    "would create": "cyan",
    "would force": "cyan",
    "would update": "cyan",
    "would remove": "cyan",
}
_LABEL_WIDTH = max(len(label) for label in STATUS_STYLES)


class StatusLog:
    """Categorized one-line reports of what happened to each path."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(highlight=False)

    def status(self, label: str, path: Path | str) -> None:
        style = STATUS_STYLES[label]
        relative = os.path.relpath(path, Path.cwd())
        self.console.print(f"[{style}]{label:>{_LABEL_WIDTH}}[/{style}]  {escape(relative)}")

    def create(self, path: Path | str) -> None:
        self.status("create", path)

    def force(self, path: Path | str) -> None:
        self.status("force", path)

    def skip(self, path: Path | str) -> None:
        self.status("skip", path)

    def update(self, path: Path | str) -> None:
        self.status("update", path)

    def remove(self, path: Path | str) -> None:
        self.status("remove", path)

    def not_found(self, path: Path | str) -> None:
        self.status("not found", path)

    def info(self, message: str) -> None:
        self.console.print(message)


log = StatusLog()


def write_file(
    path: Path,
    content: str,
    options: GeneratorOptions | None = None,
    status: StatusLog | None = None,
) -> bool:
    """
    Write ``content`` to ``path``.

    An existing file is skipped unless ``options.force``; in dry-run mode
    nothing is written but the would-be outcome is reported.

    Returns:
        True if the file was (or, in dry-run, would be) written
    """
    options = options or GeneratorOptions()
    status = status or log
    exists = path.exists()

    if exists and not options.force:
        status.skip(path)
        return False

    if options.dry_run:
        status.status("would force" if exists else "would create", path)
        return True

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)

    if exists:
        status.force(path)
    else:
        status.create(path)
    return True


def update_file(
    path: Path,
    content: str,
    options: GeneratorOptions | None = None,
    status: StatusLog | None = None,
) -> bool:
    """Rewrite a file the generator merges into (the schema), never skipping."""
    options = options or GeneratorOptions()
    status = status or log
    exists = path.exists()

    if options.dry_run:
        status.status("would update" if exists else "would create", path)
        return True

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)

    if exists:
        status.update(path)
    else:
        status.create(path)
    return True


def delete_directory(
    path: Path,
    options: GeneratorOptions | None = None,
    status: StatusLog | None = None,
) -> bool:
    """Remove a generated directory tree. Returns False if it did not exist."""
    options = options or GeneratorOptions()
    status = status or log

    if not path.exists():
        status.not_found(path)
        return False

    if options.dry_run:
        status.status("would remove", path)
        return True

    shutil.rmtree(path)
    status.remove(path)
    return True
