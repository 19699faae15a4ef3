"""Completion of extracted candidates against a record schema.

The coercer never fails on data: whatever the extractor found is kept when it
has the declared type, converted when a sensible conversion exists and
replaced by the field's default generator otherwise. Every defaulted or
converted path is recorded on the resulting record.
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING, Any

from content_recovery.core.types import Provenance, RecoveredRecord
from content_recovery.schemas.context import StrategyContext
from content_recovery.schemas.fields import FieldKind
from content_recovery.telemetry import TelemetryContext

if TYPE_CHECKING:
    from content_recovery.response.extractor import Extraction
    from content_recovery.schemas.fields import (
        FieldSpec,
        IntegerField,
        ObjectListField,
        ObjectSchema,
        RecordSchema,
        TextField,
        TextListField,
    )
    from content_recovery.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

T_COERCE = "recovery.coerce"

_MISSING = object()
_INTEGER_RE = re.compile(r"-?\d+")
_LIST_SPLIT_RE = re.compile(r"\s*(?:,|\r?\n)\s*")


def _is_absent(value: Any) -> bool:
    return value is _MISSING or value is None or (isinstance(value, str) and not value.strip())


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


class _Paths:
    """Collects defaulted and coerced field paths for one record."""

    __slots__ = ("coerced", "defaulted")

    def __init__(self) -> None:
        self.defaulted: list[str] = []
        self.coerced: list[str] = []

    def default(self, path: str) -> None:
        self.defaulted.append(path)

    def coerce(self, path: str) -> None:
        if path not in self.coerced:
            self.coerced.append(path)

    def __bool__(self) -> bool:
        return bool(self.defaulted or self.coerced)


class SchemaCoercer:
    """Turns an extraction (or nothing) into a schema-conformant record."""

    def __init__(self, telemetry: TelemetryContextProtocol | None = None) -> None:
        self._telemetry = telemetry or TelemetryContext()

    def coerce(
        self,
        extraction: Extraction | None,
        schema: RecordSchema,
        context: StrategyContext | None = None,
    ) -> RecoveredRecord:
        """Return a record that satisfies every field and cardinality of ``schema``."""
        context = context or StrategyContext()

        with self._telemetry(T_COERCE, schema=schema.name) as ctx:
            paths = _Paths()
            candidate = self._as_mapping(extraction, schema, paths)
            if candidate is None:
                record = self.synthesize(schema, context)
            else:
                value = self._object(candidate, schema.root, context, 0, "", paths)
                provenance = (
                    Provenance.COERCED_WITH_DEFAULTS if paths else extraction.provenance
                )
                record = RecoveredRecord(
                    value=value,
                    provenance=provenance,
                    defaulted_fields=tuple(paths.defaulted),
                    coerced_fields=tuple(paths.coerced),
                )
            ctx.metric("defaulted_fields", len(record.defaulted_fields))
            ctx.metric("coerced_fields", len(record.coerced_fields))

        if record.defaulted_fields or record.coerced_fields:
            log.debug(
                "Coerced '%s' (%s); defaulted: %s; coerced: %s",
                schema.name,
                record.provenance.value,
                ", ".join(record.defaulted_fields) or "none",
                ", ".join(record.coerced_fields) or "none",
            )
        return record

    def synthesize(
        self, schema: RecordSchema, context: StrategyContext | None = None
    ) -> RecoveredRecord:
        """Build a record entirely from default generators."""
        context = context or StrategyContext()
        return RecoveredRecord(
            value=self._default_object(schema.root, context, 0),
            provenance=Provenance.SYNTHETIC_FALLBACK,
            defaulted_fields=schema.root.field_names,
        )

    @staticmethod
    def _as_mapping(
        extraction: Extraction | None, schema: RecordSchema, paths: _Paths
    ) -> dict[str, Any] | None:
        if extraction is None:
            return None
        candidate = extraction.candidate
        if isinstance(candidate, dict):
            return candidate
        if isinstance(candidate, list):
            target = schema.primary_list_field
            if target is not None:
                if schema.bare_array_field is None:
                    # The model dropped the wrapping object.
                    paths.coerce(target.name)
                return {target.name: candidate}
        log.debug(
            "Candidate of type %s does not fit schema '%s'",
            type(candidate).__name__,
            schema.name,
        )
        return None

    # --- Objects ---

    def _object(
        self,
        data: dict[str, Any],
        schema: ObjectSchema,
        context: StrategyContext,
        index: int,
        path: str,
        paths: _Paths,
    ) -> dict[str, Any]:
        folded = None
        result: dict[str, Any] = {}
        for spec in schema.fields:
            field_path = _join(path, spec.name)
            raw = data.get(spec.name, _MISSING)
            if raw is _MISSING:
                # Models occasionally change the capitalization of keys.
                if folded is None:
                    folded = {str(k).lower(): v for k, v in data.items()}
                raw = folded.get(spec.name.lower(), _MISSING)
                if raw is not _MISSING:
                    paths.coerce(field_path)
            result[spec.name] = self._field(raw, spec, context, index, field_path, paths)
        return result

    def _field(
        self,
        raw: Any,
        spec: FieldSpec,
        context: StrategyContext,
        index: int,
        path: str,
        paths: _Paths,
    ) -> Any:
        if spec.kind is FieldKind.TEXT:
            return self._text(raw, spec, context, index, path, paths)
        if spec.kind is FieldKind.INTEGER:
            return self._integer(raw, spec, context, index, path, paths)
        if spec.kind is FieldKind.TEXT_LIST:
            return self._text_list(raw, spec, context, path, paths)
        if spec.kind is FieldKind.OBJECT:
            if isinstance(raw, dict):
                return self._object(raw, spec.schema, context, index, path, paths)
            paths.default(path)
            return self._default_object(spec.schema, context, index)
        return self._object_list(raw, spec, context, path, paths)

    # --- Scalars ---

    def _text(
        self,
        raw: Any,
        spec: TextField,
        context: StrategyContext,
        index: int,
        path: str,
        paths: _Paths,
    ) -> str:
        if _is_absent(raw):
            paths.default(path)
            return spec.default(context, index)
        if isinstance(raw, str):
            return raw
        if isinstance(raw, bool | int | float):
            paths.coerce(path)
            return str(raw)
        if isinstance(raw, list):
            parts = [str(item).strip() for item in raw if isinstance(item, str | int | float)]
            parts = [part for part in parts if part]
            if parts:
                paths.coerce(path)
                return ", ".join(parts)
        paths.default(path)
        return spec.default(context, index)

    def _integer(
        self,
        raw: Any,
        spec: IntegerField,
        context: StrategyContext,
        index: int,
        path: str,
        paths: _Paths,
    ) -> int:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, float) and math.isfinite(raw):
            paths.coerce(path)
            return int(raw)
        if isinstance(raw, str):
            match = _INTEGER_RE.search(raw)
            if match:
                paths.coerce(path)
                return int(match.group())
        paths.default(path)
        return spec.default(context, index)

    # --- Lists ---

    def _text_list(
        self,
        raw: Any,
        spec: TextListField,
        context: StrategyContext,
        path: str,
        paths: _Paths,
    ) -> list[str]:
        if _is_absent(raw):
            items: list[str] = []
        elif isinstance(raw, str):
            paths.coerce(path)
            items = [part for part in _LIST_SPLIT_RE.split(raw.strip()) if part]
        elif isinstance(raw, list):
            items = []
            for item in raw:
                if isinstance(item, str) and item.strip():
                    items.append(item)
                elif isinstance(item, int | float) and not isinstance(item, bool):
                    items.append(str(item))
                    paths.coerce(path)
                else:
                    paths.coerce(path)
        else:
            paths.default(path)
            items = []

        return self._fit(
            items,
            spec,
            path,
            paths,
            lambda i: spec.item_default(context, i),
        )

    def _object_list(
        self,
        raw: Any,
        spec: ObjectListField,
        context: StrategyContext,
        path: str,
        paths: _Paths,
    ) -> list[dict[str, Any]]:
        if _is_absent(raw):
            source: list[Any] = []
        elif isinstance(raw, dict):
            paths.coerce(path)
            source = [raw]
        elif isinstance(raw, list):
            source = [item for item in raw if isinstance(item, dict)]
            if len(source) != len(raw):
                paths.coerce(path)
        else:
            paths.default(path)
            source = []

        items = [
            self._object(item, spec.item_schema, context, i, f"{path}[{i}]", paths)
            for i, item in enumerate(source)
        ]

        def order_key(item: dict[str, Any]) -> tuple:
            return tuple(item[k] for k in spec.order_by)

        if spec.order_by:
            items.sort(key=order_key)

        items = self._fit(
            items,
            spec,
            path,
            paths,
            lambda i: self._default_object(spec.item_schema, context, i),
        )
        if spec.order_by:
            # Padded items may belong before given ones.
            items.sort(key=order_key)
        return items

    @staticmethod
    def _fit(items, spec, path, paths, make_default) -> list:
        """Truncate to the maximum count, then pad up to the minimum."""
        cardinality = spec.cardinality
        if cardinality.maximum is not None and len(items) > cardinality.maximum:
            log.debug(
                "Truncating '%s' from %d to %d items", path, len(items), cardinality.maximum
            )
            items = items[: cardinality.maximum]
            paths.coerce(path)
        if len(items) < cardinality.minimum:
            if not items:
                paths.default(path)
            else:
                for i in range(len(items), cardinality.minimum):
                    paths.default(f"{path}[{i}]")
            items.extend(make_default(i) for i in range(len(items), cardinality.minimum))
        return items

    # --- Synthesis ---

    def _default_object(
        self, schema: ObjectSchema, context: StrategyContext, index: int
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for spec in schema.fields:
            if spec.kind in (FieldKind.TEXT, FieldKind.INTEGER):
                result[spec.name] = spec.default(context, index)
            elif spec.kind is FieldKind.TEXT_LIST:
                result[spec.name] = [
                    spec.item_default(context, i) for i in range(spec.cardinality.minimum)
                ]
            elif spec.kind is FieldKind.OBJECT:
                result[spec.name] = self._default_object(spec.schema, context, index)
            else:
                result[spec.name] = [
                    self._default_object(spec.item_schema, context, i)
                    for i in range(spec.cardinality.minimum)
                ]
        return result


_DEFAULT_COERCER = SchemaCoercer()


def coerce(
    extraction: Extraction | None,
    schema: RecordSchema,
    context: StrategyContext | None = None,
) -> RecoveredRecord:
    """Module-level convenience using a shared, stateless coercer."""
    return _DEFAULT_COERCER.coerce(extraction, schema, context)
