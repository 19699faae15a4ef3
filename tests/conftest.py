"""
Global test configuration and shared fixtures.
"""

from collections.abc import Callable
import logging
import os
import random

import pytest

from content_recovery.config import RecoverySettings
from content_recovery.schemas.context import StrategyContext


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_recovery_env(request, monkeypatch):
    """Ensure a clean CONTENT_RECOVERY_* environment for each test.

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("CONTENT_RECOVERY_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles switching telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral properties of the whole recovery pipeline",
        "allow_env_pollution: Keep the surrounding environment for this test",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def strategy() -> StrategyContext:
    """A strategy like the ones stored for a small fitness studio."""
    return StrategyContext(
        business_description="Boutique strength studio for busy professionals",
        target_audience=("Busy professionals", "New parents", "Retirees"),
        objectives=("Grow memberships", "Increase class attendance"),
        key_messages=(
            "Join our small group classes",
            "Nutrition coaching that fits your week",
            "Transform your routine in 30 days",
        ),
        week_theme="Strength basics",
    )


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def settings() -> RecoverySettings:
    """Defaults, isolated from any environment."""
    return RecoverySettings()


@pytest.fixture
def flaky_call() -> Callable[..., Callable[[], str]]:
    """Factory for a request function that fails ``failures`` times first."""

    def _make(failures: int, text: str = "ok") -> Callable[[], str]:
        calls = {"count": 0}

        def request_fn() -> str:
            calls["count"] += 1
            if calls["count"] <= failures:
                raise ConnectionError(f"transient failure {calls['count']}")
            return text

        request_fn.calls = calls  # type: ignore[attr-defined]
        return request_fn

    return _make


