from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


def read_lines(path: Path) -> List[str]:
    """Non-blank, stripped lines of a text file; [] when it does not exist."""

    if not path.is_file():
        return []
    return [line.strip() for line in path.read_text(encoding="utf-8", errors="replace").splitlines() if line.strip()]


def write_file(path: Path, contents: str, *, mode: Optional[int] = None, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would write %s", path)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")
    if mode is not None:
        os.chmod(path, mode)
    logger.info("Wrote %s", path)


def copy_file(src: Path, dst: Path, *, mode: Optional[int] = None, dry_run: bool = False) -> bool:
    """Copy src to dst; returns False when they are already the same file."""

    if dry_run:
        logger.info("Would copy %s -> %s", src, dst)
        return True
    dst.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copy2(src, dst)
    except shutil.SameFileError:
        logger.info("%s already in place", dst)
        return False
    if mode is not None:
        os.chmod(dst, mode)
    return True
