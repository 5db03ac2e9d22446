from __future__ import annotations

import logging
import subprocess
import time
from typing import List, Optional, Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

RETRY_INTERVAL_S = 1.0


class ConnectivityError(RuntimeError):
    pass


def _in_netns(argv: Sequence[str], netns: Optional[str]) -> List[str]:
    if not netns:
        return list(argv)
    return ["sudo", "ip", "netns", "exec", netns, *argv]


def _probe_until(argv: List[str], *, timeout: float, want_success: bool) -> bool:
    deadline = time.monotonic() + timeout
    while True:
        # Each attempt only gets what is left of the overall bound.
        remaining = max(deadline - time.monotonic(), 0.0)
        try:
            r = run_cmd(argv, check=False, timeout=remaining)
            ok = (r.returncode == 0) == want_success
        except subprocess.TimeoutExpired:
            logger.debug("Attempt timed out after %.1fs: %s", remaining, " ".join(argv))
            ok = False
        if ok:
            return True
        if time.monotonic() + RETRY_INTERVAL_S >= deadline:
            return False
        time.sleep(RETRY_INTERVAL_S)


def ping_check(ip: str, timeout: float, *, expected: bool = True, netns: Optional[str] = None) -> None:
    """Wait until ``ip`` answers ping (or stops answering when expected=False).

    ``netns`` runs the probe inside a network namespace, as needed for
    quantum tenant networks.
    """

    argv = _in_netns(["ping", "-c1", "-w1", ip], netns)
    if _probe_until(argv, timeout=timeout, want_success=expected):
        return
    if expected:
        raise ConnectivityError(f"[Fail] Couldn't ping server {ip} within {timeout}s")
    raise ConnectivityError(f"[Fail] Could ping server {ip} after {timeout}s")


def ssh_check(
    ip: str,
    key_file: str,
    user: str,
    timeout: float,
    *,
    netns: Optional[str] = None,
) -> None:
    argv = _in_netns(
        ["ssh", "-o", "StrictHostKeyChecking=no", "-i", key_file, f"{user}@{ip}", "echo", "success"],
        netns,
    )
    if not _probe_until(argv, timeout=timeout, want_success=True):
        raise ConnectivityError(f"server {ip} didn't become ssh-able within {timeout}s")
