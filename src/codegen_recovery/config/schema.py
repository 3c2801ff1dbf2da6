"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces configuration
values from the environment, the project file and programmatic overrides into
the correct types with proper defaults.
"""

from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from codegen_recovery import constants


class RecoverySettings(BaseSettings):
    """Pydantic settings schema for response recovery.

    Handles validation, type coercion and defaults for every configuration
    field. Environment variables use the CODEGEN_RECOVERY_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix=constants.ENV_PREFIX,
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars for forward compatibility
    )

    # --- Detection ---

    detection_window: int = Field(
        default=constants.DETECTION_WINDOW,
        description="Leading characters inspected by dialect detection",
        ge=256,
    )

    max_response_chars: int | None = Field(
        default=None,
        description="Responses longer than this fail with a size-limit error",
        ge=1,
    )

    # --- Completeness heuristics ---

    min_complete_chars: int = Field(
        default=constants.MIN_COMPLETE_CHARS,
        description="Stripped content shorter than this is never complete",
        ge=0,
    )

    long_file_threshold: int = Field(
        default=constants.LONG_FILE_THRESHOLD,
        description="Content longer than this may use the long-file escape hatch",
        ge=1,
    )

    brace_tolerance: int = Field(
        default=constants.BRACE_TOLERANCE,
        description="Allowed brace imbalance for markup and long files",
        ge=0,
    )

    # --- Recovery behaviour ---

    aggressive_recovery: bool = Field(
        default=True,
        description="Try every extractor when the dialect is not recognised",
    )

    include_raw: bool = Field(
        default=False,
        description="Keep the raw response text on the parse result",
    )

    # NoDecode: env values are comma separated, not JSON
    ignored_path_prefixes: Annotated[tuple[str, ...], NoDecode] = Field(
        default=constants.IGNORED_PATH_PREFIXES,
        description="Recovered paths under these directories are dropped",
    )

    # --- Validation Rules ---

    @field_validator("ignored_path_prefixes", mode="before")
    @classmethod
    def parse_prefixes(cls, v: Any) -> tuple[str, ...]:
        """Accept a comma separated string or any sequence of strings."""
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, list | tuple | set | frozenset):
            raise ValueError(
                f"Invalid ignored_path_prefixes: {v!r}. "
                "Expected a list or a comma separated string."
            )
        prefixes = []
        for item in v:
            text = str(item).strip()
            if text:
                prefixes.append(text if text.endswith("/") else f"{text}/")
        return tuple(prefixes)

    @field_validator("max_response_chars", mode="before")
    @classmethod
    def parse_limit(cls, v: Any) -> Any:
        """Treat empty strings and 0 as "no limit"."""
        if v in ("", 0, "0", "none", "None"):
            return None
        return v

    @model_validator(mode="after")
    def validate_thresholds(self) -> "RecoverySettings":
        """Ensure the escape hatch threshold sits above the minimum size."""
        if self.long_file_threshold <= self.min_complete_chars:
            raise ValueError(
                "long_file_threshold must be greater than min_complete_chars "
                f"(got {self.long_file_threshold} <= {self.min_complete_chars})"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation.

        Returns:
            Dictionary with field names as keys and resolved values.
        """
        return {
            "detection_window": self.detection_window,
            "max_response_chars": self.max_response_chars,
            "min_complete_chars": self.min_complete_chars,
            "long_file_threshold": self.long_file_threshold,
            "brace_tolerance": self.brace_tolerance,
            "aggressive_recovery": self.aggressive_recovery,
            "include_raw": self.include_raw,
            "ignored_path_prefixes": self.ignored_path_prefixes,
        }
