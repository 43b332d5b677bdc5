"""
File operations for archscan.

Source discovery, size-limited reading into SourceUnits and the upward
search for a solution root.
"""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from .exceptions import FileAccessError, InvalidPathError
from .scanning.models import SourceUnit

DEFAULT_ROOT_MARKER = "*.sln"


def iter_source_files(
    root: Path,
    extensions: Iterable[str] = (".cs",),
    excluded_dirs: Iterable[str] = ("obj", "bin"),
) -> Iterator[Path]:
    """
    Yield source files under ``root`` in sorted order.

    Args:
        root: Directory to walk recursively
        extensions: File suffixes to include (case-insensitive)
        excluded_dirs: Directory names pruned from the walk wherever they
            appear below ``root``, matched case-insensitively

    Raises:
        InvalidPathError: If ``root`` is not a directory
    """
    if not root.is_dir():
        raise InvalidPathError(root, "not a directory")

    suffixes = {ext.lower() for ext in extensions}
    excluded = {name.lower() for name in excluded_dirs}

    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        # Pruned in place so excluded trees are never entered
        dirnames[:] = [d for d in dirnames if d.lower() not in excluded]
        base = Path(dirpath)
        found.extend(base / name for name in filenames if Path(name).suffix.lower() in suffixes)

    yield from sorted(found, key=lambda p: relative_path(p, root))


def relative_path(path: Path, root: Path) -> str:
    """Root-relative path with ``/`` separators on every platform."""
    return path.relative_to(root).as_posix()


def read_source_unit(
    path: Path,
    root: Path,
    encoding: str = "utf-8",
    max_size_bytes: Optional[int] = None,
) -> SourceUnit:
    """
    Read a source file into a SourceUnit.

    Args:
        path: File to read
        root: Scan root the relative path is computed against
        encoding: Text encoding; decoding errors are not replaced
        max_size_bytes: Larger files are refused

    Raises:
        FileAccessError: If the file is too large, unreadable or undecodable
    """
    try:
        if max_size_bytes is not None:
            size = path.stat().st_size
            if size > max_size_bytes:
                raise FileAccessError(path, f"File too large: {size} bytes (max {max_size_bytes})")
        with open(path, encoding=encoding, newline=None) as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise FileAccessError(path, f"Encoding error: {e}")
    except OSError as e:
        raise FileAccessError(path, f"OS error: {e}")

    if text.startswith("﻿"):
        text = text[1:]
    return SourceUnit(path=path, relative_path=relative_path(path, root), lines=tuple(text.splitlines()))


def find_solution_root(start: Path, marker: str = DEFAULT_ROOT_MARKER) -> Path:
    """
    Walk upward from ``start`` to the first directory containing ``marker``.

    ``marker`` is a glob pattern (``*.sln``) or a plain file name.

    Raises:
        InvalidPathError: If no ancestor contains the marker
    """
    current = start.resolve()
    if current.is_file():
        current = current.parent

    for directory in (current, *current.parents):
        if any(directory.glob(marker)):
            return directory

    raise InvalidPathError(start, f"no parent directory contains {marker}")
