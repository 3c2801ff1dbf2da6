"""Basic exceptions for codegen response recovery"""  # noqa: D415

from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from pathlib import Path

    from codegen_recovery.core.types import ParseResult


class CodegenRecoveryError(Exception):
    """Base exception for codegen recovery errors"""  # noqa: D415


class ConfigurationError(CodegenRecoveryError):
    """Raised when configuration values cannot be resolved or validated"""  # noqa: D415


class ConfigFileError(ConfigurationError):
    """The project file exists but its ``[tool.codegen_recovery]`` table is unusable.

    Attributes:
        file_path: The offending ``pyproject.toml``.
        cause: The underlying parse or I/O error, when there is one.
    """

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        self.file_path = file_path
        self.cause = cause
        super().__init__(f"{file_path}: {message}")


class FatalParseError(CodegenRecoveryError):
    """Raised (or returned in a Failure) when no file could be recovered.

    Carries the `ParseResult` so callers can still inspect the errors and
    the detected dialect.
    """

    def __init__(self, result: ParseResult) -> None:
        """Initialize with the fatal parse result."""
        self.result = result
        reason = "; ".join(result.errors) or "no files recovered"
        super().__init__(f"Fatal parse ({result.dialect.value}): {reason}")
