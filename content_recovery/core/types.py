"""Core data types that flow through a recovery call.

A generation request and its attempts live only for the duration of one
invocation. The recovered record is handed back to the caller, which owns
persisting or discarding it.
"""

from __future__ import annotations

import copy
import dataclasses
from datetime import datetime
from enum import Enum
import json
import typing

from content_recovery.constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    MAX_TEMPERATURE,
)

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Generation inputs ---


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationConfig:
    """Model settings passed through to the injected generation call."""

    temperature: float = DEFAULT_TEMPERATURE
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS

    def __post_init__(self) -> None:
        """Validate invariants for type safety."""
        _require(
            condition=isinstance(self.temperature, int | float)
            and not isinstance(self.temperature, bool),
            message="must be a number",
            field_name="temperature",
            exc=TypeError,
        )
        _require(
            condition=0.0 <= self.temperature <= MAX_TEMPERATURE,
            message=f"must be between 0 and {MAX_TEMPERATURE}",
            field_name="temperature",
        )
        _require(
            condition=isinstance(self.max_output_tokens, int)
            and self.max_output_tokens > 0,
            message="must be a positive int",
            field_name="max_output_tokens",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        """Provider-neutral mapping in the shape generation clients expect."""
        return {
            "temperature": self.temperature,
            "maxOutputTokens": self.max_output_tokens,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationRequest:
    """One prompt, its model settings and the schema its output must satisfy."""

    prompt: str
    schema_name: str
    config: GenerationConfig = dataclasses.field(default_factory=GenerationConfig)

    def __post_init__(self) -> None:
        """Validate invariants for type safety."""
        _require(
            condition=isinstance(self.prompt, str) and bool(self.prompt.strip()),
            message="must be a non-empty str",
            field_name="prompt",
        )
        _require(
            condition=isinstance(self.schema_name, str) and bool(self.schema_name),
            message="must be a non-empty str",
            field_name="schema_name",
        )
        _require(
            condition=isinstance(self.config, GenerationConfig),
            message="must be a GenerationConfig",
            field_name="config",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationAttempt:
    """Outcome of a single call to the generation function."""

    index: int
    started_at: datetime
    latency: float
    text: str | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.text is not None

    @property
    def failure_reason(self) -> str | None:
        if self.error is None:
            return None
        return f"{type(self.error).__name__}: {self.error}"


@dataclasses.dataclass(frozen=True, slots=True)
class InvocationOutcome:
    """Text returned by a successful invocation plus every attempt made."""

    text: str
    attempts: tuple[GenerationAttempt, ...]

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


# --- Recovery outputs ---


class Provenance(str, Enum):
    """How much recovery a record needed, from least to most."""

    DIRECT_PARSE = "direct-parse"
    NORMALIZED_PARSE = "normalized-parse"
    EXTRACTED_FRAGMENT = "extracted-fragment"
    COERCED_WITH_DEFAULTS = "coerced-with-defaults"
    SYNTHETIC_FALLBACK = "synthetic-fallback"

    @property
    def rank(self) -> int:
        return list(Provenance).index(self)

    @classmethod
    def worst(cls, *values: Provenance) -> Provenance:
        """Return the provenance that needed the most recovery."""
        if not values:
            return cls.DIRECT_PARSE
        return max(values, key=lambda p: p.rank)


@dataclasses.dataclass(frozen=True, slots=True)
class RecoveredRecord:
    """A schema-conformant value plus information about how it was obtained.

    Equality compares ``value`` only, so a record recovered again from its own
    serialization compares equal to the original.
    """

    value: dict[str, typing.Any]
    provenance: Provenance = dataclasses.field(compare=False)
    defaulted_fields: tuple[str, ...] = dataclasses.field(default=(), compare=False)
    coerced_fields: tuple[str, ...] = dataclasses.field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Validate invariants for type safety."""
        _require(
            condition=isinstance(self.value, dict),
            message="must be a dict",
            field_name="value",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.provenance, Provenance),
            message="must be a Provenance",
            field_name="provenance",
            exc=TypeError,
        )

    @property
    def is_partially_synthetic(self) -> bool:
        """True when defaulting occurred and the end user may deserve a warning."""
        return self.provenance in (
            Provenance.COERCED_WITH_DEFAULTS,
            Provenance.SYNTHETIC_FALLBACK,
        )

    def __getitem__(self, key: str) -> typing.Any:
        return self.value[key]

    def to_dict(self) -> dict[str, typing.Any]:
        """Deep copy of the value, safe for the caller to mutate or persist."""
        return copy.deepcopy(self.value)

    def to_json(self, **kwargs: typing.Any) -> str:
        return json.dumps(self.value, ensure_ascii=False, **kwargs)
