"""Deterministic traversal of the project template tree."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import NamedTuple

from create_mococa_app.errors import FileSystemError

IGNORED_NAMES = frozenset({"__pycache__", ".DS_Store"})


class TemplateEntry(NamedTuple):
    relative_path: str
    is_directory: bool
    source: Path


def walk(
    template_root: str | Path,
    *,
    include: Callable[[str], bool] | None = None,
) -> Iterator[TemplateEntry]:
    """Yield every entry under *template_root*, depth-first and pre-order.

    Siblings are visited in name order, so two walks over the same tree yield
    the same sequence.  Relative paths use forward slashes on every platform.
    When *include* returns ``False`` for a directory, neither the directory
    nor anything below it is yielded.

    Raises:
        FileSystemError: If *template_root* is not a directory.
    """
    root = Path(template_root)
    if not root.is_dir():
        raise FileSystemError(root, "template directory not found")
    yield from _walk_directory(root, root, include)


def _walk_directory(
    root: Path,
    directory: Path,
    include: Callable[[str], bool] | None,
) -> Iterator[TemplateEntry]:
    for child in sorted(directory.iterdir(), key=lambda p: p.name):
        if child.name in IGNORED_NAMES:
            continue
        relative = child.relative_to(root).as_posix()
        if include is not None and not include(relative):
            continue
        is_directory = child.is_dir()
        yield TemplateEntry(relative, is_directory, child)
        if is_directory:
            yield from _walk_directory(root, child, include)
