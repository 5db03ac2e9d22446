from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import StackConfig
from .osinfo import OSDescriptor, detect_os
from .services import ServiceSet

logger = logging.getLogger(__name__)


@dataclass
class StackCtx:
    """Everything a helper needs instead of shell globals.

    ``services`` is rebound on every enable/disable. The OS descriptor is
    detected on first access and reused for the life of the context.
    """

    cfg: StackConfig = field(default_factory=StackConfig)
    services: ServiceSet = field(default_factory=ServiceSet)
    dry_run: bool = False
    detector: Optional[Callable[[], OSDescriptor]] = None
    repos_updated: bool = False
    _os: Optional[OSDescriptor] = field(default=None, repr=False)

    @property
    def os(self) -> OSDescriptor:
        if self._os is None:
            self._os = (self.detector or detect_os)()
        return self._os

    def is_service_enabled(self, *names: str) -> bool:
        return self.services.contains(*names)

    def enable_service(self, *names: str) -> ServiceSet:
        self.services = self.services.enable(*names)
        logger.info("Enabled services: %s", self.services)
        return self.services

    def disable_service(self, *names: str) -> ServiceSet:
        self.services = self.services.disable(*names)
        logger.info("Enabled services: %s", self.services)
        return self.services

    def disable_all_services(self) -> ServiceSet:
        self.services = self.services.disable_all()
        return self.services
