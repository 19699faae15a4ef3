"""
Exceptions for content recovery

Only GenerationFailure crosses the pipeline boundary at runtime. Malformed
responses and schema violations are absorbed by the recovery tiers and show
up in a record's provenance instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from content_recovery.core.types import GenerationAttempt


class ContentRecoveryError(Exception):
    """Base exception for content recovery errors"""


class GenerationFailure(ContentRecoveryError):
    """Raised when the upstream generation call failed on every attempt"""

    def __init__(
        self,
        last_error: BaseException | None,
        attempts: tuple[GenerationAttempt, ...] = (),
    ) -> None:
        self.last_error = last_error
        self.attempts = tuple(attempts)
        reason = f"{type(last_error).__name__}: {last_error}" if last_error else "unknown error"
        super().__init__(
            f"Generation failed after {len(self.attempts)} attempt(s); last error: {reason}"
        )

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


class SchemaDefinitionError(ContentRecoveryError):
    """Raised when a record schema is declared incorrectly or is unknown"""


class ConfigurationError(ContentRecoveryError):
    """Raised when settings fail validation"""
