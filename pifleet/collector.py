"""Audit Collector.

Walks the live system and produces one AuditRecord plus sidecar archives.
Every field degrades to an empty value on failure; only creating the output
locations and writing the document are fatal.
"""

from __future__ import annotations

import logging
import os
import socket
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Tuple, TypeVar

from .context import RunContext
from .errors import OutputError
from .lib import accounts, firewall, mounts, pkg, sshkeys, systemd, zerotier
from .lib.archive import create_tarball, list_files, walk_relative
from .lib.env import PATHS
from .lib.files import read_lines
from .record import AuditRecord, UserRecord, save_record

logger = logging.getLogger(__name__)

T = TypeVar("T")

DOTFILES = (".bashrc", ".profile", ".gitconfig")
USER_ARCHIVE_NAMES = (*DOTFILES, ".ssh")
MAX_DEPTH = 5

PLAN = (
    "List all installed APT packages",
    "List all enabled and running systemd services",
    "List custom systemd units (.service/.timer in /etc/systemd/system)",
    "List ZeroTier networks this device is a member of",
    "Copy /etc/fstab and /etc/exports (if present)",
    "List active remote mounts (NFS, SSHFS, CIFS) and directories in /mnt",
    "Dump firewall rules (iptables and nft, if available)",
    "Archive all SSH host keys in /etc/ssh (base64-encoded)",
    "Create a tarball backup of /etc",
    "For each real user (UID >= 1000): inventory dotfiles, ~/.ssh, ~/.config, dump crontab, archive dotfiles and .ssh",
    "Compile all collected data into one JSON document",
)


def _degrade(label: str, fn: Callable[[], T], default: T) -> T:
    try:
        return fn()
    except Exception as e:
        logger.warning("Collecting %s failed (%s); recording empty result", label, e)
        return default


def log_plan(ctx: RunContext) -> None:
    logger.info("Raspberry Pi fleet system audit; actions to be performed:")
    for line in PLAN:
        logger.info("  - %s", line)
    logger.info("All output and backup files will be created in: %s", ctx.output_dir)


def prepare_output(ctx: RunContext) -> None:
    try:
        ctx.output_dir.mkdir(parents=True, exist_ok=True)
        ctx.sidecar_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(ctx.sidecar_dir, 0o700)
    except OSError as e:
        raise OutputError(f"Cannot create output directories under {ctx.output_dir}: {e}") from e


def collect_user(ctx: RunContext, entry: accounts.PasswdEntry) -> UserRecord:
    home = ctx.host_path(entry.home)

    dotfiles = [f for f in DOTFILES if (home / f).is_file()]
    ssh_paths = _degrade(f"{entry.username} ~/.ssh", lambda: walk_relative(home, ".ssh", max_depth=MAX_DEPTH), [])
    config_paths = _degrade(
        f"{entry.username} ~/.config", lambda: walk_relative(home, ".config", max_depth=MAX_DEPTH), []
    )
    crontab = _degrade(f"{entry.username} crontab", lambda: accounts.read_crontab(entry.username), "")

    tarball = ""
    names = [n for n in USER_ARCHIVE_NAMES if os.path.lexists(home / n)]
    if names:
        name = f"{entry.username}_backup.tgz"

        def _archive() -> str:
            create_tarball(ctx.sidecar_dir / name, home, names)
            return name

        tarball = _degrade(f"{entry.username} backup tarball", _archive, "")
    else:
        logger.info("User %s has nothing to archive", entry.username)

    return UserRecord(
        username=entry.username,
        home=entry.home,
        shell=entry.shell,
        dotfiles=tuple(dotfiles),
        ssh_paths=tuple(ssh_paths),
        config_paths=tuple(config_paths),
        crontab=crontab,
        tarball=tarball,
    )


def collect_users(ctx: RunContext) -> Tuple[UserRecord, ...]:
    entries = _degrade("users", lambda: accounts.regular_users(ctx.host_path("/etc/passwd")), [])
    users: List[UserRecord] = []
    for entry in entries:
        logger.info("Gathering user %s (home=%s)", entry.username, entry.home)
        users.append(collect_user(ctx, entry))
    return tuple(users)


def backup_etc(ctx: RunContext) -> str:
    logger.info("Backing up /etc")
    create_tarball(ctx.sidecar_dir / ctx.etc_tarball_name, ctx.host_root, ["etc"])
    return ctx.etc_tarball_name


def collect(ctx: RunContext) -> AuditRecord:
    logger.info("Gathering APT package list")
    packages = _degrade("packages", pkg.installed_packages, [])

    logger.info("Gathering enabled and running services")
    enabled = _degrade("enabled services", systemd.enabled_services, [])
    running = _degrade("running services", systemd.running_services, [])

    logger.info("Gathering custom systemd units (%s)", PATHS.systemd_system_dir)
    units = _degrade(
        "custom units",
        lambda: systemd.custom_units(
            ctx.host_path(PATHS.systemd_system_dir), recorded_dir=PATHS.systemd_system_dir
        ),
        [],
    )

    logger.info("Gathering ZeroTier network memberships")
    networks = _degrade("zerotier networks", zerotier.list_networks, [])

    logger.info("Capturing fstab and NFS/SSHFS/CIFS mounts")
    fstab = _degrade("fstab", lambda: read_lines(ctx.host_path("/etc/fstab")), [])
    exports = _degrade("exports", lambda: read_lines(ctx.host_path("/etc/exports")), [])
    remote = _degrade("remote mounts", mounts.remote_mounts, [])
    mnt_dirs = _degrade("/mnt entries", lambda: mounts.mnt_entries(ctx.host_path("/mnt")), [])
    mountpoints = _degrade("/mnt mountpoints", mounts.mnt_mountpoints, [])

    logger.info("Capturing firewall rules (iptables/nft)")
    rulesets = _degrade("firewall", firewall.capture_rulesets, {})

    logger.info("Capturing SSH host keys")
    keys = _degrade("ssh host keys", lambda: sshkeys.collect_host_keys(ctx.host_path(PATHS.ssh_dir)), [])

    etc_backup = _degrade("/etc backup", lambda: backup_etc(ctx), "")
    etc_diff = _degrade("/etc inventory", lambda: list_files(ctx.host_path("/etc"), recorded_root="/etc"), [])

    users = collect_users(ctx)

    return AuditRecord(
        packages=tuple(packages),
        enabled_services=tuple(enabled),
        running_services=tuple(running),
        custom_systemd_units=tuple(units),
        users=users,
        zerotier_networks=tuple(networks),
        fstab=tuple(fstab),
        nfs_exports=tuple(exports),
        remote_mounts=tuple(remote),
        mnt_dirs=tuple(mnt_dirs),
        mnt_mountpoints=tuple(mountpoints),
        firewall=dict(rulesets),
        ssh_host_keys=tuple(keys),
        etc_backup=etc_backup,
        etc_diff=tuple(etc_diff),
        created_at=datetime.now().astimezone().isoformat(timespec="seconds"),
        timestamp=ctx.timestamp,
        hostname=socket.gethostname(),
    )


def run_audit(ctx: RunContext) -> Path:
    """Collect and write the audit document; returns its path."""

    log_plan(ctx)
    prepare_output(ctx)

    record = collect(ctx)

    path = ctx.audit_path or ctx.default_audit_path
    try:
        save_record(path, record)
    except OSError as e:
        raise OutputError(f"Cannot write audit document {path}: {e}") from e

    logger.info("User backups stored in %s", ctx.sidecar_dir)
    if record.etc_backup:
        logger.info("Etc backup stored as %s", ctx.sidecar_dir / record.etc_backup)
    return path
