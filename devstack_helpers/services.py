from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

logger = logging.getLogger(__name__)


# Group name -> token prefix. A group counts as enabled when any member
# token carries its prefix, even if the group name itself was never enabled.
GROUP_PREFIXES = {
    "nova": "n-",
    "cinder": "c-",
    "ceilometer": "ceilometer-",
    "glance": "g-",
    "quantum": "q-",
}

NEGATION_PREFIX = "-"


def _normalize_tokens(tokens: Iterable[str]) -> Tuple[str, ...]:
    seen: list[str] = []
    for t in tokens:
        t = t.strip()
        if t and t not in seen:
            seen.append(t)
    return tuple(seen)


@dataclass(frozen=True)
class ServiceSet:
    """Enabled service identifiers.

    Membership is exact-token; the group names in GROUP_PREFIXES are also
    satisfied by any prefixed member (``n-api`` makes ``nova`` enabled).
    Every mutating operation returns a new set.
    """

    tokens: Tuple[str, ...] = ()

    @classmethod
    def from_string(cls, raw: str | None) -> "ServiceSet":
        return cls(tokens=_normalize_tokens((raw or "").split(",")))

    def to_string(self) -> str:
        return ",".join(self.tokens)

    def __str__(self) -> str:
        return self.to_string()

    def __contains__(self, token: object) -> bool:
        return token in self.tokens

    def __iter__(self) -> Iterator[str]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __bool__(self) -> bool:
        return bool(self.tokens)

    def _matches(self, name: str) -> bool:
        if name in self.tokens:
            return True
        prefix = GROUP_PREFIXES.get(name)
        if prefix is None:
            return False
        return any(t.startswith(prefix) for t in self.tokens)

    def contains(self, *names: str) -> bool:
        """True if any of ``names`` is enabled."""
        return any(self._matches(n) for n in names)

    def enable(self, *names: str) -> "ServiceSet":
        """Add services; each name may itself be a comma-separated list."""

        tokens = list(self.tokens)
        for name in _normalize_tokens(t for n in names for t in n.split(",")):
            if not ServiceSet(tokens=tuple(tokens)).contains(name):
                tokens.append(name)
        return ServiceSet(tokens=_normalize_tokens(tokens)).purge_negations()

    def disable(self, *names: str) -> "ServiceSet":
        # Only literal tokens are removed: disabling "nova" leaves n-* members.
        drop = {n for n in names if self.contains(n)}
        return ServiceSet(tokens=_normalize_tokens(t for t in self.tokens if t not in drop))

    def disable_all(self) -> "ServiceSet":
        return ServiceSet()

    def purge_negations(self) -> "ServiceSet":
        """Consume ``-X`` directives, dropping both ``-X`` and ``X``."""

        negated = {t[len(NEGATION_PREFIX):] for t in self.tokens if t.startswith(NEGATION_PREFIX)}
        if not negated:
            return self
        logger.debug("Disabling negated services: %s", ",".join(sorted(negated)))
        kept = (
            t
            for t in self.tokens
            if not t.startswith(NEGATION_PREFIX) and t not in negated
        )
        return ServiceSet(tokens=_normalize_tokens(kept))
