from __future__ import annotations

import tarfile
import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_python_floor_has_extraction_filters() -> None:
    # extractall(filter=...) is missing from 3.10.0-3.10.11 and 3.11.0-3.11.3.
    requires = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]["requires-python"]
    assert requires.startswith(">=")
    floor = tuple(int(part) for part in requires[2:].split("."))
    assert floor >= (3, 12)
    assert hasattr(tarfile, "tar_filter")
    assert hasattr(tarfile, "fully_trusted_filter")
