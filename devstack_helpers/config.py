from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_ENABLED_SERVICES = (
    "g-api,g-reg,key,n-api,n-crt,n-obj,n-cpu,n-net,n-cond,cinder,c-sch,c-api,c-vol,"
    "n-sch,n-novnc,n-xvnc,n-cauth,horizon,rabbit,tempest,mysql"
)

_FALSE_WORDS = {"0", "no", "false", "False", "FALSE"}
_TRUE_WORDS = {"1", "yes", "true", "True", "TRUE"}


def trueorfalse(default: bool, value: Any) -> bool:
    """Interpret a loose boolean setting ("yes", "False", 1, ...)."""

    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip()
    if text in _FALSE_WORDS:
        return False
    if text in _TRUE_WORDS:
        return True
    return default


@dataclass(frozen=True)
class StackConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _get(self, key: str, default: Any = None) -> Any:
        value = self.raw.get(key)
        return default if value is None else value

    def _flag(self, key: str, default: bool) -> bool:
        return trueorfalse(default, self.raw.get(key))

    def _proxy(self, key: str) -> str:
        return str(self.raw.get(key) or os.environ.get(key) or "")

    @property
    def enabled_services(self) -> str:
        return str(self._get("enabled_services", DEFAULT_ENABLED_SERVICES))

    @property
    def offline(self) -> bool:
        return self._flag("offline", False)

    @property
    def reclone(self) -> bool:
        return self._flag("reclone", False)

    @property
    def error_on_clone(self) -> bool:
        return self._flag("error_on_clone", False)

    @property
    def dest(self) -> str:
        return str(self._get("dest", "/opt/stack"))

    @property
    def top_dir(self) -> str:
        return str(self._get("top_dir", os.getcwd()))

    @property
    def files_dir(self) -> str:
        return str(self._get("files_dir", str(Path(self.top_dir) / "files")))

    @property
    def package_dir(self) -> str:
        return str(self._get("package_dir", str(Path(self.files_dir) / "apts")))

    @property
    def screen_name(self) -> str:
        return str(self._get("screen_name", "stack"))

    @property
    def screen_hardstatus(self) -> str:
        return str(self._get("screen_hardstatus", "%{= .} %-Lw%{= .}%> %n%f %t*%{= .}%+Lw%< %-=%{g}(%{d}%H/%l%{g})"))

    @property
    def screen_logdir(self) -> Optional[str]:
        value = self._get("screen_logdir")
        return str(value) if value else None

    @property
    def service_dir(self) -> str:
        return str(self._get("service_dir", str(Path(self.dest) / "status")))

    @property
    def use_screen(self) -> bool:
        return self._flag("use_screen", True)

    @property
    def track_depends(self) -> bool:
        return self._flag("track_depends", False)

    @property
    def pip_use_mirrors(self) -> bool:
        return self._flag("pip_use_mirrors", True)

    @property
    def pip_download_cache(self) -> str:
        return str(self._get("pip_download_cache", "/var/cache/pip"))

    @property
    def stack_user(self) -> str:
        return str(self._get("stack_user", os.environ.get("USER") or "stack"))

    @property
    def glance_hostport(self) -> str:
        return str(self._get("glance_hostport", "127.0.0.1:9292"))

    @property
    def http_proxy(self) -> str:
        return self._proxy("http_proxy")

    @property
    def https_proxy(self) -> str:
        return self._proxy("https_proxy")

    @property
    def no_proxy(self) -> str:
        return self._proxy("no_proxy")


def load_stack_config(path: str | None) -> StackConfig:
    """Load settings from a YAML file; a missing file means all defaults."""

    if not path:
        return StackConfig()
    p = Path(path)
    if not p.exists():
        return StackConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("stack config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise RuntimeError("PyYAML is required to read the stack config") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"{path} is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")

    return StackConfig(raw={str(k).lower(): v for k, v in raw.items()})
