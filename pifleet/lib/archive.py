from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path
from typing import List, Sequence

logger = logging.getLogger(__name__)


def create_tarball(dest: Path, base_dir: Path, names: Sequence[str], *, mode: int = 0o600) -> Path:
    """Create a gzip tarball of base_dir/<name> entries, stored relative to base_dir.

    Equivalent to `tar czf dest -C base_dir names...`.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(dest, "w:gz") as tar:
        for name in names:
            src = base_dir / name
            if not os.path.lexists(src):
                logger.debug("Not archiving missing %s", src)
                continue
            tar.add(str(src), arcname=name)
    os.chmod(dest, mode)
    logger.info("Wrote %s (names=%s)", dest, ",".join(names))
    return dest


def extract_tarball(
    src: Path,
    dest: Path,
    *,
    preserve_owner: bool = False,
    dry_run: bool = False,
) -> None:
    """Extract src into dest.

    preserve_owner=False behaves like `tar --no-same-owner`: symlinks are kept
    as archived (dotfile managers link outside the home) and the caller fixes
    ownership afterwards with chown.
    """
    if dry_run:
        logger.info("Would extract %s -> %s", src, dest)
        return

    dest.mkdir(parents=True, exist_ok=True)
    with tarfile.open(src, "r:*") as tar:
        tar.extractall(str(dest), filter="fully_trusted" if preserve_owner else "tar")
    logger.info("Extracted %s -> %s", src, dest)


def list_files(root: Path, *, recorded_root: str) -> List[str]:
    """Sorted regular files under root, rebased onto recorded_root (like `find -type f`)."""

    if not root.is_dir():
        return []
    out: List[str] = []
    for dirpath, _, filenames in os.walk(root):
        for fn in filenames:
            p = Path(dirpath) / fn
            if p.is_file() and not p.is_symlink():
                out.append(str(Path(recorded_root) / p.relative_to(root)))
    return sorted(out)


def walk_relative(base: Path, sub: str, *, max_depth: int = 5) -> List[str]:
    """Sorted paths under base/sub relative to base, like `find base/sub -mindepth 1 -maxdepth N`."""

    top = base / sub
    if not top.is_dir():
        return []
    out: List[str] = []
    for dirpath, dirnames, filenames in os.walk(top):
        depth = len(Path(dirpath).relative_to(top).parts)
        for name in [*dirnames, *filenames]:
            if depth + 1 <= max_depth:
                out.append(str((Path(dirpath) / name).relative_to(base)))
        if depth + 1 >= max_depth:
            dirnames[:] = []
    return sorted(out)
