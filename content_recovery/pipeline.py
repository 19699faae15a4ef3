"""
Recovery pipeline: raw model text in, schema-conformant record out

``recover`` is the entry point for text that was already obtained.
``ContentGenerator`` composes the retrying invoker upstream of it for callers
that want one call covering generation and recovery.
"""

from __future__ import annotations

from collections.abc import Mapping
import inspect
import logging
from typing import TYPE_CHECKING, Any

from content_recovery.client.invoker import RetryingInvoker
from content_recovery.config import RecoverySettings, get_settings
from content_recovery.core.types import GenerationConfig, GenerationRequest
from content_recovery.response.coercer import SchemaCoercer
from content_recovery.response.extractor import StructuralExtractor
from content_recovery.schemas.catalog import resolve_schema
from content_recovery.schemas.context import StrategyContext
from content_recovery.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from content_recovery.core.types import RecoveredRecord
    from content_recovery.schemas.fields import RecordSchema
    from content_recovery.telemetry import TelemetryContextProtocol

    GenerateFn = Callable[[str, GenerationConfig], str | Awaitable[str]]
    ContextLike = StrategyContext | Mapping[str, Any] | None

log = logging.getLogger(__name__)

T_RECOVER = "recovery.recover"


def resolve_context(context: ContextLike) -> StrategyContext:
    """Validate a mapping into a StrategyContext; None yields an empty one."""
    if context is None:
        return StrategyContext()
    if isinstance(context, StrategyContext):
        return context
    if isinstance(context, Mapping):
        return StrategyContext.model_validate(dict(context))
    raise TypeError(
        f"context must be a StrategyContext or a mapping, got {type(context).__name__}"
    )


def _preview(text: str | None, limit: int) -> str:
    if not text:
        return "<empty>"
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else f"{flat[:limit]}..."


class RecoveryPipeline:
    """Extracts a candidate from raw text and completes it against a schema.

    Stateless: one instance can serve any number of concurrent recoveries.
    """

    def __init__(
        self,
        extractor: StructuralExtractor | None = None,
        coercer: SchemaCoercer | None = None,
        *,
        settings: RecoverySettings | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self._telemetry = telemetry or TelemetryContext()
        self.extractor = extractor or StructuralExtractor(telemetry=self._telemetry)
        self.coercer = coercer or SchemaCoercer(telemetry=self._telemetry)
        self.settings = settings or get_settings()

    def recover(
        self,
        raw_text: str | None,
        schema: RecordSchema | str,
        context: ContextLike = None,
    ) -> RecoveredRecord:
        """Return a record satisfying ``schema``, however broken ``raw_text`` is.

        Raises:
            SchemaDefinitionError: If ``schema`` names no registered schema.
        """
        record_schema = resolve_schema(schema)
        strategy = resolve_context(context)
        log.debug(
            "Recovering '%s' from response: %s",
            record_schema.name,
            _preview(raw_text, self.settings.response_preview_chars),
        )

        with self._telemetry(T_RECOVER, schema=record_schema.name) as ctx:
            extraction = self.extractor.extract(raw_text, record_schema.shape_hint)
            record = self.coercer.coerce(extraction, record_schema, strategy)
            ctx.count(f"provenance.{record.provenance.value}")

        if record.is_partially_synthetic:
            log.warning(
                "Response for '%s' was auto-completed (%s); defaulted: %s",
                record_schema.name,
                record.provenance.value,
                ", ".join(record.defaulted_fields) or "none",
            )
        else:
            log.debug(
                "Recovered '%s' with provenance %s",
                record_schema.name,
                record.provenance.value,
            )
        return record


_DEFAULT_PIPELINE: RecoveryPipeline | None = None


def recover(
    raw_text: str | None,
    schema: RecordSchema | str,
    context: ContextLike = None,
) -> RecoveredRecord:
    """Recover with a shared default pipeline."""
    global _DEFAULT_PIPELINE
    if _DEFAULT_PIPELINE is None:
        _DEFAULT_PIPELINE = RecoveryPipeline()
    return _DEFAULT_PIPELINE.recover(raw_text, schema, context)


class ContentGenerator:
    """Runs an injected generation call with retries, then recovers its text.

    ``generate_fn(prompt, config)`` may be a plain function or a coroutine
    function. Only GenerationFailure escapes ``generate``; malformed text is
    handled by the pipeline.
    """

    def __init__(
        self,
        generate_fn: GenerateFn,
        *,
        invoker: RetryingInvoker | None = None,
        pipeline: RecoveryPipeline | None = None,
        settings: RecoverySettings | None = None,
    ) -> None:
        if not callable(generate_fn):
            raise TypeError("generate_fn must be callable")
        self.settings = settings or get_settings()
        self._generate_fn = generate_fn
        self.invoker = invoker or RetryingInvoker(self.settings)
        self.pipeline = pipeline or RecoveryPipeline(settings=self.settings)

    def request(
        self,
        prompt: str,
        schema_name: str,
        config: GenerationConfig | None = None,
    ) -> GenerationRequest:
        """Build a request using the configured generation defaults."""
        return GenerationRequest(
            prompt=prompt,
            schema_name=schema_name,
            config=config or self.settings.generation_config(),
        )

    async def generate(
        self, request: GenerationRequest, context: ContextLike = None
    ) -> RecoveredRecord:
        """Generate text for ``request`` and recover it into a record.

        Raises:
            GenerationFailure: When every generation attempt failed.
            SchemaDefinitionError: If the request names an unknown schema.
        """
        # Resolve before spending any generation attempts.
        schema = resolve_schema(request.schema_name)
        strategy = resolve_context(context)

        async def call() -> str:
            result = self._generate_fn(request.prompt, request.config)
            if inspect.isawaitable(result):
                result = await result
            return result

        text = await self.invoker.invoke(call)
        return self.pipeline.recover(text, schema, strategy)
