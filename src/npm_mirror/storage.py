"""Reading and atomically replacing lockfiles on disk."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

DEFAULT_LOCKFILE = Path("package-lock.json")


def read_lockfile(path: Path) -> bytes:
    return path.read_bytes()


def write_lockfile(path: Path, content: bytes) -> None:
    """Replace ``path`` with ``content`` so readers see the old or new file, never a mix."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o777)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
