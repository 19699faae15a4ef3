"""Lightweight telemetry for retry attempts and recovery tiers.

A TelemetryContext is either a shared no-op instance or a context that times
nested scopes and forwards metrics to reporters. Scope nesting is tracked in
context variables so concurrent asyncio tasks do not see each other's stack.
"""

from __future__ import annotations

from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from typing import Any, Protocol, TypeAlias, runtime_checkable

from content_recovery.constants import DEBUG_ENV_VAR, TELEMETRY_ENV_VAR

log = logging.getLogger(__name__)

_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "content_recovery_scope_stack", default=()
)


def telemetry_enabled() -> bool:
    """Whether telemetry was switched on through the environment."""
    return os.getenv(TELEMETRY_ENV_VAR) == "1" or os.getenv(DEBUG_ENV_VAR) == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless context used whenever telemetry is off."""

    def __call__(self, name: str, **metadata: Any) -> _NoOpTelemetryContext:
        return self

    def __enter__(self) -> _NoOpTelemetryContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Times scopes and fans metrics out to every reporter."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter) -> None:
        self.reporters = reporters

    def __call__(self, name: str, **metadata: Any):
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(self, name: str, **metadata: Any):
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        parent = _scope_stack_var.get()
        scope_path = ".".join((*parent, name))
        token = _scope_stack_var.set((*parent, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start
            _scope_stack_var.reset(token)
            self._emit(
                "record_timing",
                scope_path,
                duration,
                depth=len(parent),
                parent_scope=".".join(parent) or None,
                **metadata,
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric under the current scope path."""
        parent = _scope_stack_var.get()
        self._emit(
            "record_metric",
            ".".join((*parent, name)),
            value,
            depth=len(parent),
            parent_scope=".".join(parent) or None,
            **metadata,
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, metric_type="counter", **metadata)

    def _emit(self, method: str, scope: str, value: Any, **metadata: Any) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                # A broken reporter must not break recovery.
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

TelemetryContextProtocol: TypeAlias = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(  # noqa: N802
    *reporters: TelemetryReporter, force: bool = False
) -> TelemetryContextProtocol:
    """Return an active context, or the shared no-op one when disabled.

    A context is active when reporters are given and either ``force`` is set or
    ``CONTENT_RECOVERY_TELEMETRY=1`` / ``DEBUG=1`` is in the environment.
    """
    if reporters and (force or telemetry_enabled()):
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


class InMemoryReporter:
    """Reporter that keeps recent timings and metrics for inspection."""

    def __init__(self, max_entries_per_scope: int = 1000) -> None:
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

    def metric_total(self, scope: str) -> float:
        values = self.metrics.get(scope, ())
        return sum(v for v, _ in values if isinstance(v, int | float))

    def get_report(self) -> str:
        """Flat text report, one line per scope."""
        lines = ["=== Recovery Telemetry ==="]
        for scope, entries in sorted(self.timings.items()):
            durations = [d for d, _ in entries]
            lines.append(
                f"{scope:<40} | Calls: {len(durations):<4} | "
                f"Avg: {sum(durations) / len(durations):.4f}s"
            )
        for scope, entries in sorted(self.metrics.items()):
            lines.append(
                f"{scope:<40} | Count: {len(entries):<4} | "
                f"Total: {self.metric_total(scope):,.0f}"
            )
        return "\n".join(lines)
