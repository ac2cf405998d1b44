"""Content hash of a project folder, used as the application version label."""

import hashlib
from pathlib import Path
from typing import Iterator, Union


def iter_project_files(folder: Union[str, Path]) -> Iterator[Path]:
    """Yield regular files under ``folder`` sorted by relative path, skipping hidden entries."""
    root = Path(folder)
    files = [
        path
        for path in root.rglob("*")
        if path.is_file() and not any(part.startswith(".") for part in path.relative_to(root).parts)
    ]
    yield from sorted(files, key=lambda p: p.relative_to(root).as_posix())


def directory_checksum(folder: Union[str, Path]) -> str:
    """
    MD5 hex digest over the concatenated contents of every file in ``folder``.

    Files are read in sorted relative-path order, so the digest does not depend
    on the order in which the filesystem lists them.
    """
    md5 = hashlib.md5()
    for path in iter_project_files(folder):
        md5.update(path.read_bytes())
    return md5.hexdigest()
