"""Project-file configuration: the ``[tool.codegen_recovery]`` table.

Only the nearest ``pyproject.toml`` is consulted; there is no home-directory
file and no profile selection.
"""

import logging
from pathlib import Path
import tomllib
from typing import Any

from codegen_recovery import constants
from codegen_recovery.exceptions import ConfigFileError

log = logging.getLogger(__name__)


class FileConfigLoader:
    """Reads configuration values from the project's pyproject.toml."""

    def load_project_config(self, project_root: Path | None = None) -> dict[str, Any]:
        """Return the ``[tool.codegen_recovery]`` table as a plain dict.

        Args:
            project_root: Where to start looking for pyproject.toml; the
                current directory when None. Parent directories are searched
                too.

        Returns:
            The table's values, or an empty dict when there is no project
            file or it has no such table.

        Raises:
            ConfigFileError: If the file cannot be read or parsed, or the
                section is not a table.
        """
        path = self.find_pyproject(project_root)
        if path is None:
            return {}

        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e

        tool = data.get("tool")
        if not isinstance(tool, dict):
            return {}
        section = tool.get(constants.PYPROJECT_SECTION)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigFileError(
                path, f"[tool.{constants.PYPROJECT_SECTION}] must be a table"
            )
        log.debug("Loaded %d setting(s) from %s", len(section), path)
        return dict(section)

    @staticmethod
    def find_pyproject(start_dir: Path | None = None) -> Path | None:
        """Nearest pyproject.toml at or above `start_dir`."""
        start = Path(start_dir or Path.cwd()).resolve()
        for directory in (start, *start.parents):
            candidate = directory / "pyproject.toml"
            if candidate.is_file():
                return candidate
        return None
