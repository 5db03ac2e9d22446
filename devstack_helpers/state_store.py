from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .services import ServiceSet

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    return "json"


def _yaml():
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("YAML state requested but PyYAML is not available. Use a .json state file.") from e
    return yaml


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    if _detect_format(p) in {"yaml", "yml"}:
        yaml = _yaml()
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Unreadable state file {p}: {e}") from e
    else:
        # JSONDecodeError is already a ValueError.
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")
    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(_yaml().safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any], *, enabled_services: str) -> Dict[str, Any]:
    """Fill required keys without overriding values already recorded.

    The configured service list is remembered under ``configured_services``.
    Recorded services survive later runs until the configured list changes;
    then the new configured list replaces them.
    """

    state.setdefault("version", 1)
    seeded = state.get("configured_services")
    if "enabled_services" not in state or (seeded is not None and seeded != enabled_services):
        state["enabled_services"] = enabled_services
    state["configured_services"] = enabled_services
    state.setdefault("errors", [])
    return state


def services_from_state(state: Dict[str, Any]) -> ServiceSet:
    return ServiceSet.from_string(str(state.get("enabled_services") or ""))


def record_services(state: Dict[str, Any], services: ServiceSet) -> None:
    state["enabled_services"] = services.to_string()
