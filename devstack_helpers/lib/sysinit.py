from __future__ import annotations

import logging

from ..context import StackCtx
from .command import run_cmd

logger = logging.getLogger(__name__)


def _service(ctx: StackCtx, name: str, action: str) -> None:
    tool = "/usr/sbin/service" if ctx.os.is_ubuntu else "/sbin/service"
    run_cmd(["sudo", tool, name, action], dry_run=ctx.dry_run)


def start_service(ctx: StackCtx, name: str) -> None:
    _service(ctx, name, "start")


def stop_service(ctx: StackCtx, name: str) -> None:
    _service(ctx, name, "stop")


def restart_service(ctx: StackCtx, name: str) -> None:
    _service(ctx, name, "restart")
