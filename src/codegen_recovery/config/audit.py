"""Configuration source tracking.

The resolver records, layer by layer, which source last set each field; the
resulting source map backs `ResolvedConfig.audit()` and the origin counts
reported by `generate_telemetry_summary`.
"""

from collections import Counter
from collections.abc import Iterable

from .types import ConfigOrigin, SourceMap


class SourceTracker:
    """Last-writer-wins origin per configuration field."""

    __slots__ = ("_origins",)

    def __init__(self) -> None:
        self._origins: dict[str, ConfigOrigin] = {}

    def record(self, fields: Iterable[str], origin: ConfigOrigin) -> None:
        """Mark every field in `fields` as coming from `origin`."""
        for field in fields:
            self._origins[field] = origin

    def origin_of(self, field: str) -> ConfigOrigin | None:
        return self._origins.get(field)

    def get_source_map(self) -> SourceMap:
        """Snapshot of the origins recorded so far."""
        return dict(self._origins)


def generate_telemetry_summary(source_map: SourceMap) -> dict[str, int]:
    """Count fields per origin, e.g. ``{"env": 2, "default": 6}``."""
    return dict(Counter(source_map.values()))
