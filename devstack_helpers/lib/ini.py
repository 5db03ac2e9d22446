from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^\[.*\]")


def _read_lines(path: str) -> List[str]:
    p = Path(path)
    if not p.exists():
        return []
    return p.read_text(encoding="utf-8").splitlines()


def _write_lines(path: str, lines: List[str]) -> None:
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")


def _section_lines(lines: List[str], section: str) -> Iterator[Tuple[int, str]]:
    """Yield (index, line) for lines inside every ``[section]`` block."""

    header = f"[{section}]"
    inside = False
    for i, line in enumerate(lines):
        if _SECTION_RE.match(line):
            inside = line.startswith(header)
            continue
        if inside:
            yield i, line


def _option_re(option: str) -> "re.Pattern[str]":
    return re.compile(rf"^({re.escape(option)}[ \t]*=[ \t]*)(.*)$")


def _rewrite(path: str, section: str, fn: Callable[[str], str]) -> None:
    lines = _read_lines(path)
    changed = False
    for i, line in list(_section_lines(lines, section)):
        new = fn(line)
        if new != line:
            lines[i] = new
            changed = True
    if changed:
        _write_lines(path, lines)


def iniget(path: str, section: str, option: str) -> Optional[str]:
    """Value of the first ``option`` in ``section``, or None if absent."""

    opt = _option_re(option)
    for _, line in _section_lines(_read_lines(path), section):
        m = opt.match(line)
        if m:
            return m.group(2)
    return None


def ini_has_option(path: str, section: str, option: str) -> bool:
    return iniget(path, section, option) is not None


def iniset(path: str, section: str, option: str, value: str) -> None:
    """Set ``option = value`` in ``section``, creating either as needed."""

    lines = _read_lines(path)
    header = f"[{section}]"

    if not any(line.startswith(header) for line in lines):
        lines += ["", header]

    opt = _option_re(option)
    found = False
    for i, line in list(_section_lines(lines, section)):
        m = opt.match(line)
        if m:
            lines[i] = f"{m.group(1)}{value}"
            found = True

    if not found:
        at = next(i for i, line in enumerate(lines) if line.startswith(header))
        lines.insert(at + 1, f"{option} = {value}")

    _write_lines(path, lines)
    logger.debug("iniset %s [%s] %s", path, section, option)


def inicomment(path: str, section: str, option: str) -> None:
    opt = re.compile(rf"^{re.escape(option)}[ \t]*=.*$")
    _rewrite(path, section, lambda line: f"#{line}" if opt.match(line) else line)


def iniuncomment(path: str, section: str, option: str) -> None:
    commented = re.compile(rf"^[^ \t]*#[ \t]*({re.escape(option)}[ \t]*=.*)$")
    _rewrite(path, section, lambda line: commented.sub(r"\1", line))
