"""Core data types for content recovery."""

from content_recovery.core.types import (
    GenerationAttempt,
    GenerationConfig,
    GenerationRequest,
    InvocationOutcome,
    Provenance,
    RecoveredRecord,
)

__all__ = [
    "GenerationAttempt",
    "GenerationConfig",
    "GenerationRequest",
    "InvocationOutcome",
    "Provenance",
    "RecoveredRecord",
]
