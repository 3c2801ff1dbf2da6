"""``CODEGEN_RECOVERY_*`` environment variables.

Values are coerced through `RecoverySettings` so a bad variable is reported
with its name and raw value. An optional ``.env`` file is merged into the
process environment first without overriding variables that are already set.
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from codegen_recovery import constants

from .schema import RecoverySettings
from .types import FIELD_ORDER

log = logging.getLogger(__name__)

_ENV_VARS = {f"{constants.ENV_PREFIX}{field.upper()}": field for field in FIELD_ORDER}


def read_env_file(env_file: str | Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines; blank lines and ``#`` comments are skipped.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a line is not ``KEY=VALUE`` or the file is unreadable.
    """
    path = Path(env_file)
    if not path.exists():
        raise FileNotFoundError(f"Environment file not found: {path}")
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Failed to read environment file {path}: {e}") from e

    values: dict[str, str] = {}
    for number, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"{path}:{number}: expected KEY=VALUE, got {line!r}")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


class EnvironmentConfigLoader:
    """Loads configuration from CODEGEN_RECOVERY_* environment variables."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Return the coerced values of the variables that are set.

        Args:
            env_file: Optional ``.env`` file merged into ``os.environ`` first.

        Raises:
            ValueError: If a variable holds an invalid value.
            FileNotFoundError: If `env_file` does not exist.
        """
        if env_file:
            for key, value in read_env_file(env_file).items():
                os.environ.setdefault(key, value)
            log.debug("Loaded environment file %s", env_file)

        raw = self.get_env_summary()
        if not raw:
            return {}
        fields = {_ENV_VARS[name]: value for name, value in raw.items()}
        try:
            settings = RecoverySettings(**fields)
        except ValidationError as e:
            shown = ", ".join(f"{name}={value}" for name, value in raw.items())
            raise ValueError(
                f"Invalid environment variable values: {shown}. {e}"
            ) from e
        return {field: getattr(settings, field) for field in fields}

    def get_env_summary(self) -> dict[str, str]:
        """Return the CODEGEN_RECOVERY_* variables currently set."""
        return {name: os.environ[name] for name in _ENV_VARS if name in os.environ}
