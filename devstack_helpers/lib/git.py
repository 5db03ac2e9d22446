from __future__ import annotations

import logging
from pathlib import Path

from ..config import StackConfig
from .command import run_cmd

logger = logging.getLogger(__name__)


class GitCloneError(RuntimeError):
    pass


class GitRefError(RuntimeError):
    pass


def _git(dest: str, *args: str, check: bool = True, dry_run: bool = False):
    return run_cmd(["git", *args], cwd=dest, check=check, dry_run=dry_run)


def _has_ref(dest: str, ref: str) -> bool:
    r = run_cmd(["git", "show-ref", ref], cwd=dest, check=False)
    return bool((r.stdout or "").strip())


def _clone(cfg: StackConfig, remote: str, dest: str, *, dry_run: bool) -> None:
    if cfg.error_on_clone:
        raise GitCloneError(f"{dest} is missing and error_on_clone is set")
    run_cmd(["git", "clone", remote, dest], dry_run=dry_run)


def git_update_branch(dest: str, branch: str, *, dry_run: bool = False) -> None:
    _git(dest, "checkout", "-f", f"origin/{branch}", dry_run=dry_run)
    # A stale local branch may not exist yet.
    _git(dest, "branch", "-D", branch, check=False, dry_run=dry_run)
    _git(dest, "checkout", "-b", branch, dry_run=dry_run)


def git_update_remote_branch(dest: str, branch: str, *, dry_run: bool = False) -> None:
    _git(dest, "checkout", "-b", branch, "-t", f"origin/{branch}", dry_run=dry_run)


def git_update_tag(dest: str, tag: str, *, dry_run: bool = False) -> None:
    _git(dest, "tag", "-d", tag, dry_run=dry_run)
    _git(dest, "fetch", "origin", "tag", tag, dry_run=dry_run)
    _git(dest, "checkout", "-f", tag, dry_run=dry_run)


def _remove_pyc(dest: str, *, dry_run: bool) -> None:
    for p in Path(dest).rglob("*.pyc"):
        if dry_run:
            logger.info("Would remove %s", str(p))
        else:
            p.unlink()


def git_clone(cfg: StackConfig, remote: str, dest: str, ref: str, *, dry_run: bool = False) -> None:
    """Make ``dest`` a checkout of ``remote`` at ``ref``.

    - ``refs/...`` (review style) refs are fetched and checked out as FETCH_HEAD.
    - A fresh clone checks out ``ref`` (branch or tag).
    - An existing checkout is only touched when ``reclone`` is set; the ref
      must then resolve to a tag, a local branch or an origin branch.
    """

    if cfg.offline:
        logger.info("Offline; not syncing %s", dest)
        return

    exists = Path(dest).is_dir()

    if ref.startswith("refs"):
        if not exists:
            _clone(cfg, remote, dest, dry_run=dry_run)
        _git(dest, "fetch", remote, ref, dry_run=dry_run)
        _git(dest, "checkout", "FETCH_HEAD", dry_run=dry_run)
        return

    if not exists:
        _clone(cfg, remote, dest, dry_run=dry_run)
        _git(dest, "checkout", ref, dry_run=dry_run)
        return

    if not cfg.reclone:
        logger.info("%s already exists; leaving it alone", dest)
        return

    _git(dest, "remote", "set-url", "origin", remote, dry_run=dry_run)
    _git(dest, "fetch", "origin", dry_run=dry_run)
    _remove_pyc(dest, dry_run=dry_run)

    if _has_ref(dest, f"refs/tags/{ref}"):
        git_update_tag(dest, ref, dry_run=dry_run)
    elif _has_ref(dest, f"refs/heads/{ref}"):
        git_update_branch(dest, ref, dry_run=dry_run)
    elif _has_ref(dest, f"refs/remotes/origin/{ref}"):
        git_update_remote_branch(dest, ref, dry_run=dry_run)
    else:
        raise GitRefError(f"{ref} is neither branch nor tag")
