from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from .bootstrap_steps import BootstrapCtx, run_bootstrap
from .collector import run_audit
from .config import FleetConfig, load_config
from .context import RunContext, make_timestamp
from .errors import PifleetError
from .lib.env import PATHS, require_root
from .logging_utils import configure_logging
from .restorer import resolve_audit_path, run_restore

logger = logging.getLogger(__name__)


def cmd_audit(args: argparse.Namespace, cfg: FleetConfig) -> int:
    output_dir = Path(args.output_dir or ".").resolve()
    configure_logging(log_path=str(output_dir / cfg.audit_log))
    require_root()

    ctx = RunContext(
        output_dir=output_dir,
        host_root=Path(args.root),
        sidecar_dir_name=cfg.sidecar_dir_name,
        timestamp=make_timestamp(),
    )
    run_audit(ctx)
    return 0


def cmd_restore(args: argparse.Namespace, cfg: FleetConfig) -> int:
    timestamp = make_timestamp()
    configure_logging(log_path=f"{PATHS.restore_log_prefix}{timestamp}.log")
    require_root(dry_run=args.dry_run)

    audit_path = resolve_audit_path(args.audit, Path.cwd())
    ctx = RunContext(
        output_dir=Path.cwd(),
        host_root=Path(args.root),
        sidecar_dir_name=cfg.sidecar_dir_name,
        audit_path=audit_path.resolve(),
        timestamp=timestamp,
        dry_run=args.dry_run,
    )
    result = run_restore(
        ctx,
        restore_etc=cfg.restore_etc_backup and not args.skip_etc,
        start_at=args.start_at,
        stop_after=args.stop_after,
    )
    logger.info("Ran: %s", ", ".join(result.ran_steps) or "-")
    return 0


def cmd_bootstrap(args: argparse.Namespace, cfg: FleetConfig) -> int:
    configure_logging(log_path=cfg.bootstrap_log)
    require_root(dry_run=args.dry_run)

    ctx = BootstrapCtx(
        cfg=cfg,
        run=RunContext(
            output_dir=Path.cwd(),
            host_root=Path(args.root),
            timestamp=make_timestamp(),
            dry_run=args.dry_run,
        ),
    )
    run_bootstrap(ctx)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pifleet", description="Raspberry Pi fleet provisioning, audit and restore")
    p.add_argument("--config", default=None, help="Path to fleet config (yaml)")
    p.add_argument("--root", default=PATHS.host_root, help="Host filesystem root (default: /)")

    sub = p.add_subparsers(dest="subcmd", required=True)

    sp = sub.add_parser("audit", help="Snapshot this system into an audit JSON plus sidecar tarballs")
    sp.add_argument("--output-dir", default=None, help="Where to write artifacts (default: current directory)")
    sp.set_defaults(func=cmd_audit)

    sp = sub.add_parser("restore", help="Replay an audit JSON onto this system")
    sp.add_argument("audit", nargs="?", default=None, help="Audit JSON (default: newest system_audit_*.json here)")
    sp.add_argument("--start-at", default=None, help="Start at step_id (e.g. 30_restore_home_files)")
    sp.add_argument("--stop-after", default=None, help="Stop after step_id")
    sp.add_argument("--skip-etc", action="store_true", help="Do not extract the /etc backup")
    sp.add_argument("--dry-run", action="store_true", help="Log commands and writes without executing them")
    sp.set_defaults(func=cmd_restore)

    sp = sub.add_parser("bootstrap", help="Install baseline packages and services")
    sp.add_argument("--dry-run", action="store_true", help="Log commands and writes without executing them")
    sp.set_defaults(func=cmd_bootstrap)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        cfg = load_config(args.config)
        return int(args.func(args, cfg))
    except (PifleetError, ValueError) as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
