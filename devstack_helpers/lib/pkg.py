from __future__ import annotations

import logging
import os
from typing import Dict, List, Sequence

from ..config import StackConfig
from ..context import StackCtx
from .command import run_cmd

logger = logging.getLogger(__name__)


def sudo_prefix() -> str:
    # Already root: "env" keeps the VAR=value prefix working without sudo.
    return "env" if os.geteuid() == 0 else "sudo"


def proxy_env(cfg: StackConfig, *, upper: bool = False) -> List[str]:
    """VAR=value words carrying the proxy settings through sudo."""

    values: Dict[str, str] = {
        "http_proxy": cfg.http_proxy,
        "https_proxy": cfg.https_proxy,
        "no_proxy": cfg.no_proxy,
    }
    return [f"{k.upper() if upper else k}={v}" for k, v in values.items()]


def apt_get(cfg: StackConfig, args: Sequence[str], *, dry_run: bool = False) -> None:
    if cfg.offline or not args:
        return
    run_cmd(
        [
            sudo_prefix(),
            "DEBIAN_FRONTEND=noninteractive",
            *proxy_env(cfg),
            "apt-get",
            "--option",
            "Dpkg::Options::=--force-confold",
            "--assume-yes",
            *args,
        ],
        dry_run=dry_run,
    )


def yum_install(cfg: StackConfig, packages: Sequence[str], *, dry_run: bool = False) -> None:
    if cfg.offline or not packages:
        return
    run_cmd([sudo_prefix(), *proxy_env(cfg), "yum", "install", "-y", *packages], dry_run=dry_run)


def zypper_install(cfg: StackConfig, packages: Sequence[str], *, dry_run: bool = False) -> None:
    if cfg.offline or not packages:
        return
    run_cmd(
        [
            sudo_prefix(),
            *proxy_env(cfg),
            "zypper",
            "--non-interactive",
            "install",
            "--auto-agree-with-licenses",
            *packages,
        ],
        dry_run=dry_run,
    )


def install_package(ctx: StackCtx, packages: Sequence[str]) -> None:
    """Install distro packages with whichever manager the host uses.

    Anything that is neither deb-based nor SUSE goes through yum.
    """

    if not packages:
        return
    os_info = ctx.os
    if os_info.is_ubuntu:
        # Refresh the indexes once per context.
        if not ctx.repos_updated:
            apt_get(ctx.cfg, ["update"], dry_run=ctx.dry_run)
            ctx.repos_updated = True
        apt_get(ctx.cfg, ["install", *packages], dry_run=ctx.dry_run)
    elif os_info.is_suse:
        zypper_install(ctx.cfg, packages, dry_run=ctx.dry_run)
    else:
        yum_install(ctx.cfg, packages, dry_run=ctx.dry_run)


def is_package_installed(ctx: StackCtx, packages: Sequence[str]) -> bool:
    if not packages:
        return False
    if ctx.os.is_ubuntu:
        r = run_cmd(["dpkg", "-l", *packages], check=False, dry_run=ctx.dry_run)
    else:
        r = run_cmd(["rpm", "--quiet", "-q", *packages], check=False, dry_run=ctx.dry_run)
    return r.returncode == 0
