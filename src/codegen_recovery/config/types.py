"""Core configuration data types for codegen_recovery.

This module defines the fundamental data structures used throughout the
configuration system, following the resolve-once, freeze-then-flow pattern.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

from codegen_recovery import constants

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

FIELD_ORDER = (
    "detection_window",
    "max_response_chars",
    "min_complete_chars",
    "long_file_threshold",
    "brace_tolerance",
    "aggressive_recovery",
    "include_raw",
    "ignored_path_prefixes",
)

# --- Core Configuration Data ---


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    This represents the validated, merged result of combining programmatic
    overrides, environment variables, the project file and defaults. It
    includes audit metadata for observability.
    """

    detection_window: int
    max_response_chars: int | None
    min_complete_chars: int
    long_file_threshold: int
    brace_tolerance: int
    aggressive_recovery: bool
    include_raw: bool
    ignored_path_prefixes: tuple[str, ...]

    # Audit metadata - tracks where each field value came from
    origin: SourceMap

    def to_frozen(self) -> FrozenConfig:
        """Convert to the immutable configuration used in the pipeline.

        Returns:
            FrozenConfig with the same field values, excluding audit metadata.
        """
        return FrozenConfig(**{field: getattr(self, field) for field in FIELD_ORDER})

    def with_overrides(self, **overrides: object) -> ResolvedConfig:
        """Create a new ResolvedConfig with programmatic overrides applied.

        Unknown fields are ignored. Values are not re-validated; go through
        `resolve_config` when the overrides come from user input.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)

        for field, value in overrides.items():
            if field in FIELD_ORDER:
                new_values[field] = value
                new_origin[field] = "programmatic"

        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Generate a report showing the origin of each field.

        Returns:
            One ``field: origin:value`` line per field, in a stable order.
        """
        lines = []
        for field in FIELD_ORDER:
            if field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if isinstance(value, tuple):
                value = ",".join(value)
            if origin == "env":
                value_display = f"env:{constants.ENV_PREFIX}{field.upper()}={value}"
            else:
                value_display = f"{origin}:{value}"
            lines.append(f"{field}: {value_display}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration handed to the parser and the fix engine.

    This is the final form of configuration that flows through the pipeline.
    It contains only the field values without audit metadata. Any attempt to
    modify it raises.
    """

    detection_window: int = constants.DETECTION_WINDOW
    max_response_chars: int | None = None
    min_complete_chars: int = constants.MIN_COMPLETE_CHARS
    long_file_threshold: int = constants.LONG_FILE_THRESHOLD
    brace_tolerance: int = constants.BRACE_TOLERANCE
    aggressive_recovery: bool = True
    include_raw: bool = False
    ignored_path_prefixes: tuple[str, ...] = constants.IGNORED_PATH_PREFIXES

