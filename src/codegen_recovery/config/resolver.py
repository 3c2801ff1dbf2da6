"""Configuration resolution with precedence handling.

Merges configuration from every source in the documented order:
Programmatic > Environment > Project file > Defaults
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from codegen_recovery.exceptions import ConfigurationError

from .audit import SourceTracker
from .env_loader import EnvironmentConfigLoader
from .file_loader import FileConfigLoader
from .schema import RecoverySettings
from .types import FIELD_ORDER, ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self) -> None:
        """Initialize the configuration resolver."""
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Args:
            programmatic: Programmatic overrides (highest precedence)
            use_env_file: Optional .env file to load
            project_root: Directory to search for pyproject.toml

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If validation fails or the environment holds
                invalid values.
            ConfigFileError: If the project file is malformed.
        """
        source_tracker = SourceTracker()
        merged_config: dict[str, Any] = dict.fromkeys(FIELD_ORDER)

        # Step 1: Schema defaults, without reading the environment yet
        defaults = RecoverySettings.model_construct().to_dict()
        merged_config.update(defaults)
        source_tracker.record(defaults, "default")

        # Step 2: Project file
        project_config = self.file_loader.load_project_config(project_root)
        self._apply(merged_config, project_config, source_tracker, "file")

        # Step 3: Environment variables
        try:
            env_config = self.env_loader.load_env_config(env_file=use_env_file)
        except (ValueError, FileNotFoundError) as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e
        self._apply(merged_config, env_config, source_tracker, "env")

        # Step 4: Programmatic overrides
        self._apply(merged_config, programmatic or {}, source_tracker, "programmatic")

        # Step 5: Validate the merged result
        try:
            final_config = RecoverySettings(**merged_config).to_dict()
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        origin = source_tracker.get_source_map()
        log.debug("Resolved configuration from %s", sorted(set(origin.values())))
        return ResolvedConfig(**final_config, origin=origin)

    @staticmethod
    def _apply(
        merged: dict[str, Any],
        values: dict[str, Any],
        tracker: SourceTracker,
        origin: ConfigOrigin,
    ) -> None:
        for field, value in values.items():
            if field in merged:  # Only override known fields
                merged[field] = value
                tracker.record((field,), origin)
            else:
                log.debug("Ignoring unknown configuration field %r (%s)", field, origin)
