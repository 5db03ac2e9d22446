from __future__ import annotations

import logging
import re
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .lib.command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

_MAC_CODENAMES = [
    ("10.7", "lion"),
    ("10.6", "snow leopard"),
    ("10.5", "leopard"),
    ("10.4", "tiger"),
    ("10.3", "panther"),
]

_REDHAT_VENDORS = ("Red Hat", "CentOS", "Fedora")
_FEDORA_FAMILY = {"Fedora", "Red Hat", "CentOS"}
_SUSE_FAMILY = {"openSUSE", "SUSE LINUX"}

# "Fedora release 16 (Verne)" -> ("16", "Verne")
_REDHAT_RE = re.compile(r"^.* (\S*) \((.*)\).*$")

Which = Callable[[str], Optional[str]]
Runner = Callable[..., CmdResult]


@dataclass(frozen=True)
class OSDescriptor:
    vendor: str = ""
    release: str = ""
    update: str = ""
    package: str = ""  # deb|rpm, empty on macOS
    codename: str = ""

    @property
    def is_ubuntu(self) -> bool:
        return self.package == "deb"

    @property
    def is_fedora(self) -> bool:
        return self.vendor in _FEDORA_FAMILY

    @property
    def is_suse(self) -> bool:
        return self.vendor in _SUSE_FAMILY

    @property
    def distro(self) -> str:
        """Short tag used to filter package manifests (e.g. precise, f16)."""

        if "Ubuntu" in self.vendor:
            return self.codename
        if "Fedora" in self.vendor:
            return f"f{self.release}"
        if "openSUSE" in self.vendor:
            return f"opensuse-{self.release}"
        if "SUSE LINUX" in self.vendor:
            if not self.update:
                return f"sle{self.release}"
            return f"sle{self.release}sp{self.update}"
        return f"{self.vendor}-{self.release}.{self.update}"

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["distro"] = self.distro
        return d


def _split_version(version: str) -> Tuple[str, str]:
    """Split "10.7.5" into ("10.7", "5"); a dotless version has no update."""
    if "." not in version:
        return version, ""
    release, update = version.rsplit(".", 1)
    return release, update


def _out(run: Runner, argv: Sequence[str]) -> str:
    return (run(list(argv), check=False).stdout or "").strip()


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return None


def _detect_mac(run: Runner) -> OSDescriptor:
    vendor = _out(run, ["sw_vers", "-productName"])
    release, update = _split_version(_out(run, ["sw_vers", "-productVersion"]))
    codename = ""
    for prefix, name in _MAC_CODENAMES:
        if release.startswith(prefix):
            codename = name
            break
    return OSDescriptor(vendor=vendor, release=release, update=update, package="", codename=codename)


def _detect_lsb(run: Runner) -> OSDescriptor:
    vendor = _out(run, ["lsb_release", "-i", "-s"])
    release = _out(run, ["lsb_release", "-r", "-s"])
    package = "rpm"
    if vendor in {"Debian", "Ubuntu"}:
        package = "deb"
    elif vendor == "SUSE LINUX":
        if "openSUSE" in _out(run, ["lsb_release", "-d", "-s"]):
            vendor = "openSUSE"
    codename = _out(run, ["lsb_release", "-c", "-s"])
    return OSDescriptor(vendor=vendor, release=release, update="", package=package, codename=codename)


def _detect_redhat(text: str) -> OSDescriptor:
    # Red Hat Enterprise Linux Server release 5.5 (Tikanga)
    # CentOS release 5.5 (Final)
    # Fedora release 16 (Verne)
    first = text.strip().splitlines()[0] if text.strip() else ""
    for vendor in _REDHAT_VENDORS:
        if vendor not in text:
            continue
        m = _REDHAT_RE.match(first)
        version, codename = (m.group(1), m.group(2)) if m else ("", "")
        release, update = _split_version(version)
        return OSDescriptor(vendor=vendor, release=release, update=update, package="rpm", codename=codename)
    return OSDescriptor(package="rpm")


def _suse_field(text: str, key: str) -> str:
    for line in text.splitlines():
        if line.startswith(f"{key} = "):
            return line.split(" = ", 1)[1].strip()
    return ""


def _detect_suse(text: str) -> OSDescriptor:
    for marker, vendor in (("openSUSE", "openSUSE"), ("SUSE Linux", "SUSE LINUX")):
        if marker in text:
            return OSDescriptor(
                vendor=vendor,
                release=_suse_field(text, "VERSION"),
                update=_suse_field(text, "PATCHLEVEL"),
                package="rpm",
                codename=_suse_field(text, "CODENAME"),
            )
    return OSDescriptor(package="rpm")


def detect_os(
    *,
    which: Which = shutil.which,
    run: Runner = run_cmd,
    etc_dir: str = "/etc",
) -> OSDescriptor:
    """Probe the running host once and describe it.

    Order: sw_vers (macOS), lsb_release, /etc/redhat-release, /etc/SuSE-release.
    Callers cache the result (see StackCtx.os); this function always probes.
    """

    etc = Path(etc_dir)
    redhat = _read_text(etc / "redhat-release")
    suse = _read_text(etc / "SuSE-release")
    if which("sw_vers"):
        desc = _detect_mac(run)
    elif which("lsb_release"):
        desc = _detect_lsb(run)
    elif redhat is not None:
        desc = _detect_redhat(redhat)
    elif suse is not None:
        desc = _detect_suse(suse)
    else:
        logger.warning("Unable to identify the operating system")
        desc = OSDescriptor()

    logger.info(
        "OS: vendor=%s release=%s update=%s package=%s codename=%s distro=%s",
        desc.vendor,
        desc.release,
        desc.update,
        desc.package,
        desc.codename,
        desc.distro,
    )
    return desc


def get_rootwrap_location(os_info: OSDescriptor, module: str) -> str:
    if os_info.is_fedora or os_info.is_suse:
        return f"/usr/bin/{module}-rootwrap"
    return f"/usr/local/bin/{module}-rootwrap"


def get_pip_command(os_info: OSDescriptor, *, which: Which = shutil.which) -> str:
    name = "pip-python" if os_info.is_fedora else "pip"
    found = which(name)
    if not found:
        raise RuntimeError(f"Unable to find {name} on PATH")
    return found
