from __future__ import annotations

import logging
import stat

import pytest

from pifleet import bootstrap_steps
from pifleet.bootstrap_steps import BootstrapCtx, run_bootstrap, validate_config
from pifleet.config import VNC_PASSWORD_ENV, FleetConfig
from pifleet.errors import ConfigError
from tests.conftest import write


@pytest.fixture(autouse=True)
def _no_env_password(monkeypatch):
    monkeypatch.delenv(VNC_PASSWORD_ENV, raising=False)


@pytest.fixture
def bctx(make_ctx):
    def _make(raw=None, *, dry_run=False) -> BootstrapCtx:
        raw = raw if raw is not None else {"vnc": {"password": "s3cret"}}
        return BootstrapCtx(cfg=FleetConfig(raw=raw), run=make_ctx(dry_run=dry_run))

    return _make


class TestValidateConfig:
    def test_missing_password(self) -> None:
        with pytest.raises(ConfigError):
            validate_config(FleetConfig())

    def test_placeholder_password(self) -> None:
        with pytest.raises(ConfigError):
            validate_config(FleetConfig(raw={"vnc": {"password": "CHANGE_ME"}}))

    def test_env_password_accepted(self, monkeypatch) -> None:
        monkeypatch.setenv(VNC_PASSWORD_ENV, "from-env")
        validate_config(FleetConfig())

    def test_refuses_before_running_anything(self, fake_system, bctx) -> None:
        with pytest.raises(ConfigError):
            run_bootstrap(bctx(raw={}))
        assert fake_system.calls == []


class TestSteps:
    def test_vnc_config_is_private(self, fake_system, host, bctx) -> None:
        bootstrap_steps.step_50_configure_vnc(ctx=bctx())

        conf = host / "etc/wayvnc/config"
        assert conf.read_text(encoding="utf-8") == "address=0.0.0.0\nrfb_port=5900\npassword=s3cret\n"
        assert stat.S_IMODE(conf.stat().st_mode) == 0o600
        assert ["systemctl", "enable", "wayvnc.service"] in fake_system.argvs("systemctl")

    def test_unattended_reboot_appended_once(self, fake_system, host, bctx) -> None:
        conf = write(host / "etc/apt/apt.conf.d/50unattended-upgrades", "// stock config")
        ctx = bctx()

        bootstrap_steps.step_60_unattended_upgrades(ctx=ctx)
        bootstrap_steps.step_60_unattended_upgrades(ctx=ctx)

        text = conf.read_text(encoding="utf-8")
        assert text.startswith("// stock config\n")
        assert text.count('Unattended-Upgrade::Automatic-Reboot "true";') == 1
        assert 'Unattended-Upgrade::Automatic-Reboot-Time "02:00";' in text
        assert (host / "etc/apt/apt.conf.d/20auto-upgrades").is_file()

    def test_monthly_reboot_not_duplicated(self, fake_system, bctx) -> None:
        fake_system.on("crontab", "-l", "-u", "root", stdout="0 3 5 * * /sbin/shutdown -r now\n")

        bootstrap_steps.step_70_monthly_reboot(ctx=bctx())
        assert fake_system.inputs("crontab", "-u", "root", "-") == []

    def test_monthly_reboot_appended_to_existing_crontab(self, fake_system, bctx) -> None:
        fake_system.on("crontab", "-l", "-u", "root", stdout="@daily /usr/local/bin/sync")

        ctx = bctx({"vnc": {"password": "x"}, "bootstrap": {"reboot_schedule": "0 4 1 * *"}})
        bootstrap_steps.step_70_monthly_reboot(ctx=ctx)
        assert fake_system.inputs("crontab", "-u", "root", "-") == [
            "@daily /usr/local/bin/sync\n0 4 1 * * /sbin/shutdown -r now\n"
        ]

    def test_zerotier_joins_configured_networks(self, fake_system, bctx) -> None:
        fake_system.installed.add("zerotier-cli")
        ctx = bctx({"vnc": {"password": "x"}, "zerotier": {"networks": ["8056c2e21c000001"]}})

        bootstrap_steps.step_40_install_zerotier(ctx=ctx)
        assert fake_system.argvs("bash") == []
        assert fake_system.argvs("zerotier-cli", "join") == [["zerotier-cli", "join", "8056c2e21c000001"]]


class TestRunBootstrap:
    def test_failing_step_does_not_stop_run(self, fake_system, host, bctx, monkeypatch, caplog) -> None:
        def boom(*, ctx):
            raise RuntimeError("no network")

        boom.__name__ = "step_40_install_zerotier"
        steps = list(bootstrap_steps.ALL_STEPS)
        steps[3] = boom
        monkeypatch.setattr(bootstrap_steps, "ALL_STEPS", steps)
        caplog.set_level(logging.INFO)

        failed = run_bootstrap(bctx())

        assert failed == ["step_40_install_zerotier"]
        assert fake_system.argvs("timedatectl") == [["timedatectl", "set-ntp", "true"]]
        assert any("Bootstrap completed" in r.getMessage() for r in caplog.records)

    def test_dry_run_writes_nothing(self, fake_system, host, bctx) -> None:
        run_bootstrap(bctx(dry_run=True))

        assert fake_system.calls == []
        assert not (host / "etc/wayvnc").exists()
