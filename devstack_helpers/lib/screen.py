from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List

from ..context import StackCtx
from .command import run_cmd, spawn_cmd

logger = logging.getLogger(__name__)

# Give the new window's shell time to start before stuffing keystrokes.
WINDOW_SETTLE_S = 1.5
NL = "\r"


def screenrc_path(ctx: StackCtx) -> Path:
    return Path(ctx.cfg.top_dir) / f"{ctx.cfg.screen_name}-screenrc"


def status_dir(ctx: StackCtx) -> Path:
    return Path(ctx.cfg.service_dir) / ctx.cfg.screen_name


def _failure_marker(ctx: StackCtx, service: str) -> Path:
    return status_dir(ctx) / f"{service}.failure"


def screen_rc(ctx: StackCtx, service: str, command: str) -> None:
    """Record a service window in the screenrc used to rejoin the session."""

    rc = screenrc_path(ctx)
    if not rc.exists():
        rc.parent.mkdir(parents=True, exist_ok=True)
        rc.write_text(
            f"sessionname {ctx.cfg.screen_name}\n"
            f"hardstatus alwayslastline '{ctx.cfg.screen_hardstatus}'\n"
            "screen -t shell bash\n",
            encoding="utf-8",
        )

    window = f"screen -t {service} bash"
    if window in rc.read_text(encoding="utf-8").splitlines():
        return
    with rc.open("a", encoding="utf-8") as f:
        f.write(f"{window}\n")
        f.write(f'stuff "{command}{NL}"\n')


def _screen(ctx: StackCtx, *args: str) -> None:
    run_cmd(["screen", "-S", ctx.cfg.screen_name, *args], dry_run=ctx.dry_run)


def _link_log(logdir: Path, service: str, stamp: str, *, dry_run: bool) -> Path:
    logfile = logdir / f"screen-{service}.{stamp}.log"
    link = logdir / f"screen-{service}.log"
    if dry_run:
        logger.info("Would link %s -> %s", str(link), str(logfile))
        return logfile
    logdir.mkdir(parents=True, exist_ok=True)
    if link.is_symlink() or link.exists():
        link.unlink()
    link.symlink_to(logfile)
    return logfile


def screen_it(ctx: StackCtx, service: str, command: str) -> None:
    """Run ``command`` for an enabled service under the stack screen session.

    A failing command leaves ``<service_dir>/<screen_name>/<service>.failure``
    behind for service_check(). Without screen the command is spawned in the
    background and its pid recorded next to the markers.
    """

    if not ctx.is_service_enabled(service):
        logger.debug("Service %s not enabled; not starting", service)
        return

    status = status_dir(ctx)
    if not ctx.dry_run:
        status.mkdir(parents=True, exist_ok=True)
    guarded = f'{command} || touch "{_failure_marker(ctx, service)}"'

    if not ctx.cfg.use_screen:
        pid = spawn_cmd(["bash", "-c", guarded], dry_run=ctx.dry_run)
        if not ctx.dry_run:
            (status / f"{service}.pid").write_text(f"{pid}\n", encoding="utf-8")
        logger.info("Started %s (pid=%s)", service, pid)
        return

    screen_rc(ctx, service, command)
    _screen(ctx, "-X", "screen", "-t", service)

    if ctx.cfg.screen_logdir:
        stamp = time.strftime("%Y-%m-%d-%H%M%S")
        logfile = _link_log(Path(ctx.cfg.screen_logdir), service, stamp, dry_run=ctx.dry_run)
        _screen(ctx, "-p", service, "-X", "logfile", str(logfile))
        _screen(ctx, "-p", service, "-X", "log", "on")

    if not ctx.dry_run:
        time.sleep(WINDOW_SETTLE_S)
    _screen(ctx, "-p", service, "-X", "stuff", f"{guarded}{NL}")


def service_check(ctx: StackCtx) -> List[str]:
    """Return the services that left a failure marker, logging each one."""

    if not Path(ctx.cfg.service_dir).is_dir():
        logger.warning("No service status directory found")
        return []

    failed = sorted(p.name[: -len(".failure")] for p in status_dir(ctx).glob("*.failure"))
    for service in failed:
        logger.error("Service %s is not running", service)
    if failed:
        logger.error("More details about the above errors can be found with screen, with ./rejoin-stack.sh")
    return failed
