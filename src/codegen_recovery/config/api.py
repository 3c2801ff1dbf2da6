"""Public entry points of the configuration system."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .types import FrozenConfig, ResolvedConfig

# Stateless, so one instance serves every call
_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    use_env_file: str | Path | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Merge every configuration source into a validated `ResolvedConfig`.

    Precedence, highest first: `programmatic`, ``CODEGEN_RECOVERY_*``
    variables, ``[tool.codegen_recovery]`` in pyproject.toml, defaults.

    Args:
        programmatic: Explicit overrides. Unknown keys are ignored.
        use_env_file: A ``.env`` file merged into the environment before the
            variables are read.
        project_root: Where to look for pyproject.toml; the current directory
            and its parents when None.

    Raises:
        ConfigurationError: If any source holds an invalid value.
        ConfigFileError: If pyproject.toml exists but cannot be used.

    Example:
        config = resolve_config({"include_raw": True})
        parser = ResponseParser(config.to_frozen())
    """
    return _resolver.resolve(
        programmatic=programmatic,
        use_env_file=use_env_file,
        project_root=project_root,
    )


def default_config() -> FrozenConfig:
    """Frozen defaults, ignoring every external source."""
    return FrozenConfig()


def check_environment() -> dict[str, str]:
    """Return the CODEGEN_RECOVERY_* environment variables currently set."""
    return _resolver.env_loader.get_env_summary()
