"""Optional timing and metric reporting for the recovery pipeline.

Disabled by default: `TelemetryContext()` hands back a shared no-op context
whose scopes cost a method call. Setting ``CODEGEN_RECOVERY_TELEMETRY=1`` (or
``DEBUG=1``) before import and passing at least one reporter enables scoped
timings, e.g. ``parse.detect`` or ``parse.extract``.
"""

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

from codegen_recovery import constants

log = logging.getLogger(__name__)

# Per-context scope stack so nested parses in threads do not interleave
_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "recovery_scope_stack",
    default=(),
)

# Evaluated once at import time
_TELEMETRY_ENABLED = (
    os.getenv(constants.TELEMETRY_ENV_VAR) == "1" or os.getenv("DEBUG") == "1"
)


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless stand-in used whenever telemetry is off."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        return None

    @property
    def enabled(self) -> bool:
        return False

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Scoped timings and metrics forwarded to every reporter."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    @property
    def enabled(self) -> bool:
        return True

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(
        self, name: str, **metadata: Any
    ) -> Iterator["_EnabledTelemetryContext"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        parents = _scope_stack_var.get()
        scope_path = ".".join((*parents, name))
        token = _scope_stack_var.set((*parents, name))
        start_time = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start_time
            _scope_stack_var.reset(token)
            self._emit(
                "record_timing",
                scope_path,
                duration,
                depth=len(parents),
                parent_scope=".".join(parents) or None,
                **metadata,
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric under the current scope path."""
        parents = _scope_stack_var.get()
        self._emit(
            "record_metric",
            ".".join((*parents, name)),
            value,
            depth=len(parents),
            parent_scope=".".join(parents) or None,
            **metadata,
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        """Record a counter metric."""
        self.metric(name, increment, metric_type="counter", **metadata)

    def _emit(self, method: str, scope: str, value: Any, **metadata: Any) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return a telemetry context.

    Returns the shared no-op instance unless telemetry is enabled by
    environment flag and at least one reporter is given.
    """
    if _TELEMETRY_ENABLED and reporters:
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


class InMemoryReporter:
    """Collects timings and metrics in bounded per-scope deques.

    Used by the CLI's ``--telemetry`` flag; call `get_report()` for a
    hierarchical summary.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (duration, metadata)
        )

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (value, metadata)
        )

    def get_report(self) -> str:
        """Render timings as an indented tree followed by metric totals."""
        lines = ["=== Telemetry Report ===", "", "--- Timings ---"]
        self._format_tree(self._build_hierarchy(), lines)

        if self.metrics:
            lines.append("\n--- Metrics ---")
            for scope, values in sorted(self.metrics.items()):
                total = sum(v[0] for v in values if isinstance(v[0], int | float))
                lines.append(
                    f"{scope:<40} | Count: {len(values):<4} | Total: {total:,.0f}"
                )
        return "\n".join(lines)

    def _build_hierarchy(self) -> dict[str, Any]:
        tree: dict[str, Any] = {}
        # Deepest scopes first so parents never shadow their children
        for scope, values in sorted(
            self.timings.items(), key=lambda item: -item[0].count(".")
        ):
            *parents, leaf = scope.split(".")
            node = tree
            for part in parents:
                node = node.setdefault(part, {})
            # A scope that is also a parent keeps its timings under "_self"
            if isinstance(node.get(leaf), dict):
                node[leaf]["_self"] = values
            else:
                node[leaf] = values
        return tree

    def _format_tree(
        self, tree: dict[str, Any], lines: list[str], depth: int = 0
    ) -> None:
        indent = "  " * depth
        for key, value in sorted(tree.items()):
            if isinstance(value, dict):
                lines.append(f"{indent}{key}:")
                self._format_tree(value, lines, depth + 1)
                continue
            durations = [v[0] for v in value]
            total_time = sum(durations)
            lines.append(
                f"{indent}{key:<30} | "
                f"Calls: {len(durations):<4} | "
                f"Avg: {total_time / len(durations):.4f}s | "
                f"Total: {total_time:.4f}s"
            )
