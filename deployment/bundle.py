"""
Source bundle packaging.

Zips a project folder into an Elastic Beanstalk source bundle, leaving out
the deployer's own files, credentials and earlier archives.
"""

import zipfile
from fnmatch import fnmatch
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence, Union

from core.config import DEFAULT_EXCLUDES
from core.logging import get_logger

logger = get_logger(__name__, stage="bundle")


def normalize_excludes(patterns: Iterable[str]) -> List[str]:
    """Drop empty and duplicate patterns, keeping first-seen order."""
    seen: List[str] = []
    for pattern in patterns:
        pattern = pattern.strip().rstrip("/")
        if pattern and pattern not in seen:
            seen.append(pattern)
    return seen


def is_anchored(pattern: str) -> bool:
    return "/" in pattern


def is_excluded(relative_path: Union[str, PurePosixPath], patterns: Sequence[str]) -> bool:
    """
    Check a relative path against the exclusion patterns.

    A pattern holding a ``/`` (``/core``, ``web/static``) is anchored at the
    project root: it matches the full path or one of its leading directories.
    A bare pattern (``*.zip``, ``__pycache__``) matches a file or directory
    name at any depth.
    """
    path = PurePosixPath(relative_path)
    parts = path.parts
    prefixes = ["/".join(parts[: i + 1]) for i in range(len(parts))]

    for pattern in patterns:
        if is_anchored(pattern):
            anchored = pattern.lstrip("/")
            if any(fnmatch(prefix, anchored) for prefix in prefixes):
                return True
        elif any(fnmatch(part, pattern) for part in parts):
            return True
    return False


def collect_bundle_files(folder: Union[str, Path], excludes: Sequence[str]) -> List[Path]:
    """List regular files under ``folder`` that belong in the bundle, sorted."""
    root = Path(folder)
    files = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if is_excluded(path.relative_to(root).as_posix(), excludes):
            continue
        files.append(path)
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


def build_source_bundle(
    folder: Union[str, Path],
    archive_path: Union[str, Path],
    excludes: Optional[Iterable[str]] = None,
) -> Path:
    """Write a deflated zip of ``folder`` to ``archive_path`` and return its path."""
    root = Path(folder)
    archive_path = Path(archive_path)
    patterns = normalize_excludes(DEFAULT_EXCLUDES if excludes is None else excludes)

    files = [
        path for path in collect_bundle_files(root, patterns) if path.resolve() != archive_path.resolve()
    ]

    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in files:
            archive.write(path, arcname=path.relative_to(root).as_posix())

    logger.info(f"Wrote {len(files)} files to {archive_path.name}")
    return archive_path
