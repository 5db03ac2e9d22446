from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

DEFAULT_LOG_PATH = "/opt/stack/logs/devstack-helpers.log"
FALLBACK_LOG_NAME = "devstack-helpers.log"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log(log_path: str) -> Tuple[logging.FileHandler, str]:
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        # /opt/stack/logs does not exist yet or belongs to the stack user.
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send helper logs to ``log_path`` (and stderr when ``also_console``).

    Handlers are installed on the root logger the first time only; later
    calls just adjust the level. If the log directory cannot be written, the
    file lands in the working directory instead.

    Returns the log file actually in use.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if getattr(root, "_devstack_helpers_log_path", None):
        return root._devstack_helpers_log_path  # type: ignore[attr-defined]

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    file_handler, actual = _open_log(log_path)
    handlers: list[logging.Handler] = [file_handler]
    if also_console:
        handlers.append(logging.StreamHandler())

    for h in handlers:
        h.setFormatter(fmt)
        root.addHandler(h)

    setattr(root, "_devstack_helpers_log_path", actual)
    logging.getLogger(__name__).info("Logging to %s (asked for %s)", actual, log_path)
    return actual
