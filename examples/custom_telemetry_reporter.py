#!/usr/bin/env python3
"""Minimal custom telemetry reporter example for content-recovery.
Shows how to print timing and metric events as a generation is retried
and its response recovered.
"""

import asyncio
from typing import Any

from content_recovery import (
    ContentGenerator,
    RecoveryPipeline,
    RetryingInvoker,
    TelemetryContext,
    get_settings,
)
from content_recovery.telemetry import TelemetryReporter


class PrintReporter(TelemetryReporter):
    """A minimal telemetry reporter that prints events to the console."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        """Prints timing-related events with indentation based on call depth."""
        indent = "  " * metadata.get("depth", 0)
        print(f"[TIMING] {indent}{scope}: duration={duration:.4f}s")

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        print(f"[METRIC] {scope}: {value}")


def flaky_model():
    """Stand-in generation call: fails once, then answers with fenced JSON."""
    calls = {"count": 0}

    async def generate(prompt, config):
        calls["count"] += 1
        if calls["count"] == 1:
            raise ConnectionError("connection reset by peer")
        return '```json\n["Share a member story", "Post a form tip",]\n```'

    return generate


async def main():
    settings = get_settings(base_delay_ms=100, jitter_ms=50, max_delay_ms=1000)
    tele = TelemetryContext(PrintReporter(), force=True)

    generator = ContentGenerator(
        flaky_model(),
        invoker=RetryingInvoker(settings, telemetry=tele),
        pipeline=RecoveryPipeline(settings=settings, telemetry=tele),
        settings=settings,
    )
    record = await generator.generate(
        generator.request("Suggest three post ideas as a JSON array", "suggestions")
    )
    print("Suggestions:", *record["suggestions"], sep="\n- ")
    print("Provenance:", record.provenance.value)


if __name__ == "__main__":
    asyncio.run(main())
