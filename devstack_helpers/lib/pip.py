from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..context import StackCtx
from ..osinfo import get_pip_command
from .command import run_cmd
from .pkg import proxy_env, sudo_prefix

logger = logging.getLogger(__name__)


def pip_install(ctx: StackCtx, args: Sequence[str]) -> None:
    cfg = ctx.cfg
    if cfg.offline or not args:
        return

    if cfg.track_depends:
        sudo = "env"
        pip = str(Path(cfg.dest) / ".venv/bin/pip")
    else:
        sudo = sudo_prefix()
        pip = get_pip_command(ctx.os)

    argv = [
        sudo,
        f"PIP_DOWNLOAD_CACHE={cfg.pip_download_cache}",
        *proxy_env(cfg, upper=True),
        pip,
        "install",
    ]
    if cfg.pip_use_mirrors:
        argv.append("--use-mirrors")
    run_cmd([*argv, *args], dry_run=ctx.dry_run)


def setup_develop(ctx: StackCtx, project_dir: str) -> None:
    """Install a checkout in develop mode and hand its egg-info to the stack user."""

    pip_install(ctx, ["-e", project_dir])

    eggs = sorted(str(p) for p in Path(project_dir).glob("*.egg-info"))
    if eggs:
        run_cmd(["sudo", "chown", "-R", ctx.cfg.stack_user, *eggs], dry_run=ctx.dry_run)
