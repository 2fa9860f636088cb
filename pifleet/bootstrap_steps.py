"""Baseline provisioning for a freshly imaged device.

Every step is best effort: failures are logged and the next step runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import VNC_PLACEHOLDER, VNC_PASSWORD_ENV, FleetConfig
from .context import RunContext
from .errors import ConfigError
from .lib import zerotier
from .lib.accounts import install_crontab, read_crontab
from .lib.files import write_file
from .lib.pkg import apt_full_upgrade, apt_install, apt_update
from .lib.systemd import systemctl
from .lib.command import run_cmd

logger = logging.getLogger(__name__)

AUTO_UPGRADES = """\
APT::Periodic::Update-Package-Lists "1";
APT::Periodic::Unattended-Upgrade "1";
"""

AUTO_REBOOT_MARKER = "Unattended-Upgrade::Automatic-Reboot"


@dataclass(frozen=True)
class BootstrapCtx:
    cfg: FleetConfig
    run: RunContext

    @property
    def dry_run(self) -> bool:
        return self.run.dry_run

    def host_path(self, path: str) -> Path:
        return self.run.host_path(path)

    @property
    def reboot_line(self) -> str:
        return f"{self.cfg.reboot_schedule} /sbin/shutdown -r now"


def validate_config(cfg: FleetConfig) -> None:
    """Refuse to start without a real VNC password."""

    pw = cfg.vnc_password
    if not pw or pw == VNC_PLACEHOLDER:
        raise ConfigError(
            f"Set vnc.password in the config file or {VNC_PASSWORD_ENV} before running bootstrap"
        )


def _enable_and_start(unit: str, *, dry_run: bool) -> None:
    systemctl("enable", unit, dry_run=dry_run)
    systemctl("start", unit, dry_run=dry_run)


def step_10_update_system(*, ctx: BootstrapCtx) -> None:
    logger.info("Updating package lists and performing full upgrade")
    apt_update(dry_run=ctx.dry_run)
    apt_full_upgrade(dry_run=ctx.dry_run)


def step_20_install_base_packages(*, ctx: BootstrapCtx) -> None:
    packages = ctx.cfg.base_packages
    logger.info("Installing base packages: %s", " ".join(packages))
    apt_install(packages, dry_run=ctx.dry_run)


def step_30_enable_ssh(*, ctx: BootstrapCtx) -> None:
    logger.info("Enabling and starting SSH")
    _enable_and_start("ssh", dry_run=ctx.dry_run)


def step_40_install_zerotier(*, ctx: BootstrapCtx) -> None:
    logger.info("Installing ZeroTier")
    zerotier.install(dry_run=ctx.dry_run)
    _enable_and_start("zerotier-one", dry_run=ctx.dry_run)

    networks = ctx.cfg.zerotier_networks
    if not networks:
        logger.info("NOTE: ZeroTier network join must be performed manually after bootstrap")
    for network_id in networks:
        zerotier.join(network_id, dry_run=ctx.dry_run)


def step_50_configure_vnc(*, ctx: BootstrapCtx) -> None:
    logger.info("Configuring wayvnc system service (see /etc/wayvnc/config)")
    contents = "\n".join(
        [
            f"address={ctx.cfg.vnc_address}",
            f"rfb_port={ctx.cfg.vnc_port}",
            f"password={ctx.cfg.vnc_password}",
            "",
        ]
    )
    write_file(ctx.host_path("/etc/wayvnc/config"), contents, mode=0o600, dry_run=ctx.dry_run)
    _enable_and_start("wayvnc.service", dry_run=ctx.dry_run)


def step_60_unattended_upgrades(*, ctx: BootstrapCtx) -> None:
    logger.info("Configuring unattended upgrades")
    write_file(ctx.host_path("/etc/apt/apt.conf.d/20auto-upgrades"), AUTO_UPGRADES, dry_run=ctx.dry_run)

    conf = ctx.host_path("/etc/apt/apt.conf.d/50unattended-upgrades")
    existing = conf.read_text(encoding="utf-8") if conf.is_file() else ""
    if AUTO_REBOOT_MARKER in existing:
        logger.info("Automatic reboot already configured in %s", conf)
        return

    addition = (
        f'{AUTO_REBOOT_MARKER} "true";\n'
        f'{AUTO_REBOOT_MARKER}-Time "{ctx.cfg.automatic_reboot_time}";\n'
    )
    if existing and not existing.endswith("\n"):
        existing += "\n"
    write_file(conf, existing + addition, dry_run=ctx.dry_run)


def step_70_monthly_reboot(*, ctx: BootstrapCtx) -> None:
    line = ctx.reboot_line
    current = "" if ctx.dry_run else read_crontab("root")
    if line in current.splitlines():
        logger.info("Monthly reboot job already present")
        return

    logger.info("Adding monthly reboot cron job (%s)", line)
    if current and not current.endswith("\n"):
        current += "\n"
    install_crontab("root", current + line + "\n", dry_run=ctx.dry_run)


def step_80_enable_ntp(*, ctx: BootstrapCtx) -> None:
    logger.info("Enabling systemd-timesyncd")
    r = run_cmd(["timedatectl", "set-ntp", "true"], check=False, dry_run=ctx.dry_run)
    if not r.ok:
        logger.warning("timedatectl set-ntp failed (%s)", r.returncode)


ALL_STEPS = [
    step_10_update_system,
    step_20_install_base_packages,
    step_30_enable_ssh,
    step_40_install_zerotier,
    step_50_configure_vnc,
    step_60_unattended_upgrades,
    step_70_monthly_reboot,
    step_80_enable_ntp,
]


def run_bootstrap(ctx: BootstrapCtx) -> list[str]:
    """Run every bootstrap step; returns the names of steps that raised."""

    validate_config(ctx.cfg)
    logger.info("Bootstrap started")

    failed: list[str] = []
    for fn in ALL_STEPS:
        try:
            fn(ctx=ctx)
        except Exception:
            logger.exception("Bootstrap step %s failed; continuing", fn.__name__)
            failed.append(fn.__name__)

    logger.info("Bootstrap completed")
    logger.info(
        "REMINDER: ZeroTier join, locale, timezone, hostname, firewall, and network setup are manual steps"
    )
    return failed
