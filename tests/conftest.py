from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest

from devstack_helpers.config import StackConfig
from devstack_helpers.context import StackCtx
from devstack_helpers.lib.command import CmdResult
from devstack_helpers.osinfo import OSDescriptor
from devstack_helpers.services import ServiceSet

UBUNTU = OSDescriptor(vendor="Ubuntu", release="12.04", package="deb", codename="precise")
FEDORA = OSDescriptor(vendor="Fedora", release="17", package="rpm", codename="Beefy Miracle")
SLES = OSDescriptor(vendor="SUSE LINUX", release="11", update="2", package="rpm", codename="n/a")


class FakeRunner:
    """Stands in for run_cmd: records argv, answers from a table of prefixes."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.kwargs: List[Dict] = []
        self._answers: List = []

    def answer(self, prefix: List[str], stdout: str = "", returncode: int = 0, effect: Optional[Callable] = None):
        self._answers.append((prefix, stdout, returncode, effect))

    def __call__(self, argv, **kwargs) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        self.kwargs.append(kwargs)
        for prefix, stdout, returncode, effect in self._answers:
            if argv[: len(prefix)] == prefix:
                if effect is not None:
                    effect(argv)
                if callable(stdout):
                    stdout = stdout(argv)
                if kwargs.get("check", True) and returncode != 0:
                    raise RuntimeError(f"Command failed ({returncode})")
                return CmdResult(argv=argv, returncode=returncode, stdout=stdout, stderr="")
        return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

    def commands(self) -> List[str]:
        return [" ".join(c) for c in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_ctx(tmp_path):
    def _make(os_info: OSDescriptor = UBUNTU, services: str = "", **settings) -> StackCtx:
        raw = {
            "top_dir": str(tmp_path / "devstack"),
            "dest": str(tmp_path / "stack"),
            "files_dir": str(tmp_path / "files"),
        }
        raw.update(settings)
        return StackCtx(
            cfg=StackConfig(raw=raw),
            services=ServiceSet.from_string(services),
            detector=lambda: os_info,
        )

    return _make
