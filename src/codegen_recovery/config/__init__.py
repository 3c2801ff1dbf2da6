"""Configuration management for codegen_recovery.

Resolve once, freeze, then flow: `resolve_config()` merges defaults, the
``[tool.codegen_recovery]`` table of pyproject.toml, ``CODEGEN_RECOVERY_*``
environment variables and programmatic overrides into a `ResolvedConfig`;
``to_frozen()`` turns that into the `FrozenConfig` handed to the parser and
the fix engine.
"""

from codegen_recovery.exceptions import ConfigFileError

from .api import check_environment, default_config, resolve_config
from .audit import SourceTracker, generate_telemetry_summary
from .file_loader import FileConfigLoader
from .resolver import ConfigResolver
from .schema import RecoverySettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    # Main API
    "resolve_config",
    "default_config",
    "check_environment",
    # Core types
    "ResolvedConfig",
    "FrozenConfig",
    "SourceMap",
    "ConfigOrigin",
    # Advanced usage
    "RecoverySettings",
    "ConfigResolver",
    "FileConfigLoader",
    "ConfigFileError",
    "SourceTracker",
    "generate_telemetry_summary",
]
