from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .command import run_cmd

logger = logging.getLogger(__name__)

MIN_REGULAR_UID = 1000
EXCLUDED_USERS = frozenset({"nobody"})


@dataclass(frozen=True)
class PasswdEntry:
    username: str
    uid: int
    gid: int
    home: str
    shell: str


def parse_passwd(text: str) -> List[PasswdEntry]:
    out: List[PasswdEntry] = []
    for line in text.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        fields = line.split(":")
        if len(fields) < 7:
            logger.debug("Ignoring malformed passwd line: %r", line)
            continue
        try:
            uid, gid = int(fields[2]), int(fields[3])
        except ValueError:
            continue
        out.append(PasswdEntry(username=fields[0], uid=uid, gid=gid, home=fields[5], shell=fields[6]))
    return out


def regular_users(passwd_path: Path) -> List[PasswdEntry]:
    """Accounts with UID >= 1000, excluding nobody."""

    entries = parse_passwd(passwd_path.read_text(encoding="utf-8"))
    return [e for e in entries if e.uid >= MIN_REGULAR_UID and e.username not in EXCLUDED_USERS]


def user_exists(username: str) -> bool:
    return run_cmd(["id", "-u", username], check=False).ok


def ensure_user(username: str, shell: str, *, dry_run: bool = False) -> bool:
    """Create the account if missing, otherwise align its login shell.

    Returns True when the account was created.
    """
    if not dry_run and user_exists(username):
        run_cmd(["usermod", "-s", shell, username], check=False, dry_run=dry_run)
        logger.info("User %s already exists (shell=%s)", username, shell)
        return False
    run_cmd(["useradd", "-m", "-s", shell, username], dry_run=dry_run)
    logger.info("Created user %s (shell=%s)", username, shell)
    return True


def chown_tree(username: str, path: str, *, dry_run: bool = False) -> bool:
    # "user:" selects the user's login group.
    r = run_cmd(["chown", "-R", f"{username}:", path], check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("chown -R %s: %s failed (%s)", username, path, r.returncode)
    return r.ok


def read_crontab(username: str) -> str:
    r = run_cmd(["crontab", "-l", "-u", username], check=False)
    if r.ok:
        return r.stdout
    if r.returncode == 1 and "no crontab for" in r.stderr:
        logger.info("No crontab for %s", username)
    else:
        logger.warning("Reading crontab for %s failed (%s): %s", username, r.returncode, r.stderr.strip())
    return ""


def install_crontab(username: str, content: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(["crontab", "-u", username, "-"], check=False, input_text=content, dry_run=dry_run)
    if not r.ok:
        logger.warning("Installing crontab for %s failed (%s): %s", username, r.returncode, r.stderr.strip())
    return r.ok
