from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional

from .services import ServiceSet

logger = logging.getLogger(__name__)

GENERAL_MANIFEST = "general"
DEFER_MARKER = "NOPRIME"

# "<package> # some text dist:f16,f17"
_DIST_RE = re.compile(r"^(.*?)#.*dist:(\S*)")

# First matching prefix wins; n-api is handled before the n-* rule.
_GROUP_RULES = [
    ("c-", "cinder"),
    ("ceilometer-", "ceilometer"),
    ("s-", "swift"),
    ("n-", "nova"),
    ("g-", "glance"),
    ("key", "keystone"),
    ("q-", "quantum"),
]


class InvalidInputError(ValueError):
    pass


def manifest_names(services: ServiceSet, package_dir: Optional[Path] = None) -> List[str]:
    """Ordered manifest names to read for the enabled services.

    When ``package_dir`` is given, a manifest named after the service itself
    is also picked up if it exists there (e.g. ``mysql``).
    """

    names: List[str] = [GENERAL_MANIFEST]

    def add(name: str) -> None:
        if name not in names:
            names.append(name)

    for service in services:
        if package_dir is not None and (package_dir / service).is_file():
            add(service)

        # n-api needs glance too; that's where the image client lives.
        if service == "n-api":
            add("nova")
            add("glance")
            continue
        for prefix, group in _GROUP_RULES:
            if service.startswith(prefix):
                add(group)
                break

    return names


def parse_manifest_line(line: str, distro: str) -> Optional[str]:
    """Return the package named on a manifest line, or None if it is skipped.

    The package name ends at the first ``#``, so a comment may itself contain
    ``#`` (``tgt # see #123 dist:f16`` names ``tgt``).
    """

    if DEFER_MARKER in line:
        return None

    m = _DIST_RE.match(line)
    if m:
        wanted = {d.strip().lower() for d in m.group(2).split(",") if d.strip()}
        if distro.lower() not in wanted:
            return None
        return m.group(1).strip() or None

    pkg = line.split("#", 1)[0].strip()
    return pkg or None


def _iter_packages(names: List[str], package_dir: Path, distro: str) -> Iterator[str]:
    for name in names:
        p = package_dir / name
        if not p.is_file():
            logger.debug("No package manifest %s", str(p))
            continue
        with p.open(encoding="utf-8") as f:
            for line in f:
                pkg = parse_manifest_line(line, distro)
                if pkg:
                    yield pkg


def get_packages(services: ServiceSet, package_dir: str | None, distro: str) -> Iterator[str]:
    """Yield packages required by the enabled services for this distro.

    Deferred (NOPRIME) entries are never yielded; duplicates across manifests
    are kept. Raises InvalidInputError right away when no directory is given.
    """

    if not package_dir:
        raise InvalidInputError("No package directory supplied")

    root = Path(package_dir)
    names = manifest_names(services, root)
    logger.info("Package manifests for %s: %s", distro, ",".join(names))
    return _iter_packages(names, root, distro)
