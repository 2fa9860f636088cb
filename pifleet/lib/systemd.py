from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .command import run_cmd

logger = logging.getLogger(__name__)

CUSTOM_UNIT_SUFFIXES = (".service", ".timer")


def _first_column(text: str) -> List[str]:
    units: List[str] = []
    for line in text.splitlines():
        parts = line.split()
        # systemctl prefixes failed/odd units with a bullet.
        if parts and parts[0] in {"●", "*"}:
            parts = parts[1:]
        if parts:
            units.append(parts[0])
    return sorted(set(units))


def enabled_services() -> List[str]:
    r = run_cmd(["systemctl", "list-unit-files", "--type=service", "--state=enabled", "--no-legend"])
    return _first_column(r.stdout)


def running_services() -> List[str]:
    r = run_cmd(["systemctl", "list-units", "--type=service", "--state=running", "--no-legend"])
    return _first_column(r.stdout)


def custom_units(unit_dir: Path, *, recorded_dir: str) -> List[str]:
    """List *.service / *.timer files under unit_dir.

    Returned paths are rebased onto recorded_dir so the record holds host paths.
    """
    if not unit_dir.is_dir():
        return []
    out: List[str] = []
    for p in unit_dir.rglob("*"):
        if p.is_file() and not p.is_symlink() and p.suffix in CUSTOM_UNIT_SUFFIXES:
            out.append(str(Path(recorded_dir) / p.relative_to(unit_dir)))
    return sorted(out)


def systemctl(action: str, unit: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(["systemctl", action, unit], check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("systemctl %s %s failed (%s): %s", action, unit, r.returncode, r.stderr.strip())
    return r.ok


def daemon_reload(*, dry_run: bool = False) -> bool:
    r = run_cmd(["systemctl", "daemon-reload"], check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("systemctl daemon-reload failed (%s)", r.returncode)
    return r.ok
