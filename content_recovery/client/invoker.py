"""Retrying invocation of the injected generation call.

Attempts run strictly one after another. Between attempts the current task
awaits an exponential backoff delay with random jitter, so other tasks keep
running while this one waits.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
import inspect
import logging
import random
import time
from typing import TYPE_CHECKING, Any

from content_recovery.config import RecoverySettings, get_settings
from content_recovery.core.types import GenerationAttempt, InvocationOutcome
from content_recovery.exceptions import GenerationFailure
from content_recovery.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from content_recovery.telemetry import TelemetryContextProtocol

    RequestFn = Callable[[], str | Awaitable[str]]

log = logging.getLogger(__name__)

# --- Telemetry scopes ---
T_INVOKE = "recovery.invoke"
T_ATTEMPT = "recovery.attempt"


class RetryingInvoker:
    """Calls a zero-argument generation function until it returns text.

    ``sleep``, ``rng`` and ``clock`` are injectable so tests can run without
    real delays.
    """

    def __init__(
        self,
        settings: RecoverySettings | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock
        self._telemetry = telemetry or TelemetryContext()

    def compute_delay_ms(self, failures: int, base_delay_ms: float) -> float:
        """Backoff before the next attempt after ``failures`` consecutive failures."""
        jitter = self._rng.uniform(0, self.settings.jitter_ms)
        return min(base_delay_ms * 2**failures + jitter, self.settings.max_delay_ms)

    async def invoke(
        self,
        request_fn: RequestFn,
        max_attempts: int | None = None,
        base_delay_ms: float | None = None,
    ) -> str:
        """Return the text of the first successful attempt.

        Raises:
            GenerationFailure: When every attempt failed.
        """
        outcome = await self.run(request_fn, max_attempts, base_delay_ms)
        return outcome.text

    async def run(
        self,
        request_fn: RequestFn,
        max_attempts: int | None = None,
        base_delay_ms: float | None = None,
    ) -> InvocationOutcome:
        """Like :meth:`invoke` but also returns every attempt for diagnostics."""
        if not callable(request_fn):
            raise TypeError("request_fn must be callable")
        attempts_allowed = (
            self.settings.max_attempts if max_attempts is None else max_attempts
        )
        base_delay = (
            self.settings.base_delay_ms if base_delay_ms is None else base_delay_ms
        )
        if attempts_allowed < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay_ms must not be negative")

        attempts: list[GenerationAttempt] = []
        last_error: Exception | None = None

        with self._telemetry(T_INVOKE, max_attempts=attempts_allowed) as ctx:
            for index in range(1, attempts_allowed + 1):
                log.debug("Generation attempt %d of %d", index, attempts_allowed)
                attempt = await self._attempt(request_fn, index)
                attempts.append(attempt)

                if attempt.succeeded:
                    ctx.metric("attempts", index)
                    log.debug(
                        "Generation attempt %d succeeded in %.3fs",
                        index,
                        attempt.latency,
                    )
                    return InvocationOutcome(text=attempt.text, attempts=tuple(attempts))

                last_error = attempt.error
                ctx.count("failed_attempts")
                if index == attempts_allowed:
                    break

                delay_ms = self.compute_delay_ms(index, base_delay)
                log.warning(
                    "Generation attempt %d/%d failed (%s). Retrying in %.2fs",
                    index,
                    attempts_allowed,
                    attempt.failure_reason,
                    delay_ms / 1000,
                )
                await self._sleep(delay_ms / 1000)

            ctx.metric("attempts", len(attempts))
            ctx.count("exhausted")

        log.error(
            "All %d generation attempts failed; last error: %s",
            attempts_allowed,
            attempts[-1].failure_reason,
        )
        raise GenerationFailure(last_error, tuple(attempts)) from last_error

    async def _attempt(self, request_fn: RequestFn, index: int) -> GenerationAttempt:
        started_at = datetime.now(UTC)
        start = self._clock()
        with self._telemetry(T_ATTEMPT, attempt=index):
            try:
                result = request_fn()
                if inspect.isawaitable(result):
                    result = await result
                if not isinstance(result, str):
                    raise TypeError(
                        f"generation call returned {type(result).__name__}, expected str"
                    )
            except Exception as e:  # every failure is retryable
                return GenerationAttempt(
                    index=index,
                    started_at=started_at,
                    latency=self._clock() - start,
                    error=e,
                )
        return GenerationAttempt(
            index=index,
            started_at=started_at,
            latency=self._clock() - start,
            text=result,
        )
