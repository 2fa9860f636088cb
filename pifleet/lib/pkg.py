from __future__ import annotations

import logging
from typing import List, Sequence

from ..record import PackageRecord, normalize_packages
from .command import run_cmd

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def parse_dpkg_query(text: str) -> List[PackageRecord]:
    """Parse `dpkg-query -W -f='${Package} ${Version}\\n'` output."""

    out: List[PackageRecord] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        name, _, version = line.partition(" ")
        out.append(PackageRecord(name=name, version=version.strip()))
    return out


def installed_packages() -> List[PackageRecord]:
    r = run_cmd(["dpkg-query", "-W", "-f=${Package} ${Version}\n"])
    return list(normalize_packages(parse_dpkg_query(r.stdout)))


def apt_update(*, dry_run: bool = False) -> bool:
    r = run_cmd(["apt-get", "update", "-y"], check=False, env=APT_ENV, dry_run=dry_run)
    if not r.ok:
        logger.warning("apt-get update failed (%s)", r.returncode)
    return r.ok


def apt_full_upgrade(*, dry_run: bool = False) -> bool:
    r = run_cmd(["apt-get", "full-upgrade", "-y"], check=False, env=APT_ENV, dry_run=dry_run)
    if not r.ok:
        logger.warning("apt-get full-upgrade failed (%s)", r.returncode)
    return r.ok


def apt_install(packages: Sequence[str], *, dry_run: bool = False) -> bool:
    if not packages:
        return True
    r = run_cmd(
        ["apt-get", "install", "-y", *packages],
        check=False,
        env=APT_ENV,
        dry_run=dry_run,
    )
    if not r.ok:
        logger.warning("apt-get install failed (%s) for %d package(s)", r.returncode, len(packages))
    return r.ok


def apt_has_package(package: str, *, dry_run: bool = False) -> bool:
    """Return True if apt knows about a package name.

    Package availability varies by release, so a restore filters on this
    before retrying a failed batch install.
    """
    if dry_run:
        return True
    r = run_cmd(["apt-cache", "show", package], check=False)
    return r.ok
