"""Tiered extraction of a JSON-like candidate from free text.

Tiers are tried in order and the first one that yields something usable wins:

1. direct parse of the fence-stripped text, then of the normalized text
2. the elements of a named array field, parsed one fragment at a time
3. the outermost balanced ``{...}`` span, found by depth counting
4. ``key: "value"`` patterns grouped into records by occurrence

Malformed input never raises here; each tier simply yields nothing and the
next one gets its turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from content_recovery.core.types import Provenance
from content_recovery.response.normalizer import normalize_with_report, strip_fences
from content_recovery.telemetry import TelemetryContext

if TYPE_CHECKING:
    from content_recovery.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

T_EXTRACT = "recovery.extract"

_LIST_MARKER_RE = re.compile(r"^\s*(?:\d+\s*[.):-]|[-*•])\s*")
_SURROUNDING_QUOTES_RE = re.compile(r"^[\"'](.*?)[\"'],?$")
_NOISE_LINE_RE = re.compile(r"```|[\[\]{}]")


class ExtractionTier(str, Enum):
    """Which extraction strategy produced a candidate."""

    DIRECT = "direct"
    NORMALIZED = "normalized"
    NAMED_ARRAY = "named-array"
    BALANCED_SPAN = "balanced-span"
    FIELD_PATTERN = "field-pattern"

    @property
    def provenance(self) -> Provenance:
        if self is ExtractionTier.DIRECT:
            return Provenance.DIRECT_PARSE
        if self is ExtractionTier.NORMALIZED:
            return Provenance.NORMALIZED_PARSE
        return Provenance.EXTRACTED_FRAGMENT


@dataclass(frozen=True, slots=True)
class ShapeHint:
    """What the extractor should look for in a response.

    Attributes:
        array_field: Top-level array field whose items can be salvaged one by
            one (e.g. ``"weeklyThemes"``).
        item_fields: Field names expected on each array item, used by the
            pattern tier.
        scalar_fields: Field names of a single record, used by the pattern
            tier when there is no array field.
        object_field: Field the single record found by the pattern tier is
            nested under (e.g. ``"post"``).
        bare_array: The response is expected to be a JSON array rather than
            an object.
    """

    array_field: str | None = None
    item_fields: tuple[str, ...] = ()
    scalar_fields: tuple[str, ...] = ()
    object_field: str | None = None
    bare_array: bool = False


@dataclass(frozen=True, slots=True)
class Extraction:
    """A parsed candidate and the tier that produced it."""

    candidate: Any
    tier: ExtractionTier
    repairs: tuple[str, ...] = ()
    skipped_fragments: int = 0

    @property
    def provenance(self) -> Provenance:
        return self.tier.provenance


def _loads(text: str) -> tuple[Any, tuple[str, ...]] | None:
    """Parse ``text`` as-is, then normalized. Returns (value, repairs) or None."""
    try:
        return json.loads(text), ()
    except (ValueError, RecursionError):
        pass
    result = normalize_with_report(text)
    try:
        return json.loads(result.text, strict=False), result.repairs
    except (ValueError, RecursionError):
        return None


def _is_container(value: Any) -> bool:
    return isinstance(value, dict | list) and bool(value)


def find_closing(text: str, start: int) -> int | None:
    """Index of the bracket closing the one at ``start``, or None if unclosed.

    Brackets inside string literals are ignored.
    """
    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return i
    return None


def split_array_elements(text: str, start: int) -> list[str]:
    """Split the array opened at ``text[start]`` into top-level element texts.

    A truncated array yields its complete elements plus the partial tail.
    """
    elements: list[str] = []
    depth = 0
    in_string = False
    escape = False
    element_start = start + 1

    for i in range(start + 1, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            if depth == 0:
                elements.append(text[element_start:i])
                return [e.strip() for e in elements if e.strip()]
            depth -= 1
        elif ch == "," and depth == 0:
            elements.append(text[element_start:i])
            element_start = i + 1

    elements.append(text[element_start:])
    return [e.strip() for e in elements if e.strip()]


class StructuralExtractor:
    """Finds the most structured candidate a response still contains."""

    def __init__(self, telemetry: TelemetryContextProtocol | None = None) -> None:
        self._telemetry = telemetry or TelemetryContext()

    def extract(self, text: str | None, shape_hint: ShapeHint | None = None) -> Extraction | None:
        """Return the first candidate any tier can recover, or None."""
        if not text or not text.strip():
            log.debug("Nothing to extract from an empty response")
            return None
        hint = shape_hint or ShapeHint()

        tiers = (
            self._parse_whole,
            self._named_array,
            self._balanced_span,
            self._field_patterns,
        )
        with self._telemetry(T_EXTRACT) as ctx:
            for tier in tiers:
                extraction = tier(text, hint)
                if extraction is not None:
                    ctx.count(f"tier.{extraction.tier.value}")
                    log.debug(
                        "Extraction succeeded with tier '%s' (repairs: %s, skipped fragments: %d)",
                        extraction.tier.value,
                        ", ".join(extraction.repairs) or "none",
                        extraction.skipped_fragments,
                    )
                    return extraction
            ctx.count("tier.none")

        log.debug("No extraction tier recovered a candidate")
        return None

    # --- Tier 1 ---

    def _parse_whole(self, text: str, hint: ShapeHint) -> Extraction | None:
        stripped = strip_fences(text)
        try:
            value = json.loads(stripped)
        except (ValueError, RecursionError):
            pass
        else:
            if _is_container(value):
                return Extraction(value, ExtractionTier.DIRECT)

        result = normalize_with_report(text)
        try:
            value = json.loads(result.text, strict=False)
        except (ValueError, RecursionError):
            return None
        if _is_container(value):
            return Extraction(value, ExtractionTier.NORMALIZED, result.repairs)
        return None

    # --- Tier 2 ---

    def _named_array(self, text: str, hint: ShapeHint) -> Extraction | None:
        start = self._locate_array(text, hint)
        if start is None:
            return None

        items: list[Any] = []
        repairs: list[str] = []
        skipped = 0
        for fragment in split_array_elements(text, start):
            parsed = _loads(fragment)
            if parsed is None:
                skipped += 1
                continue
            value, fragment_repairs = parsed
            items.append(value)
            repairs.extend(r for r in fragment_repairs if r not in repairs)

        if not items:
            return None
        candidate: Any = items if hint.array_field is None else {hint.array_field: items}
        return Extraction(
            candidate,
            ExtractionTier.NAMED_ARRAY,
            tuple(repairs),
            skipped_fragments=skipped,
        )

    @staticmethod
    def _locate_array(text: str, hint: ShapeHint) -> int | None:
        if hint.array_field:
            pattern = re.compile(
                rf"[\"']?{re.escape(hint.array_field)}[\"']?\s*:\s*\[",
                re.IGNORECASE,
            )
            match = pattern.search(text)
            if match:
                return match.end() - 1
        if hint.bare_array:
            index = text.find("[")
            return index if index != -1 else None
        return None

    # --- Tier 3 ---

    def _balanced_span(self, text: str, hint: ShapeHint) -> Extraction | None:
        openers = "{[" if hint.bare_array else "{"
        starts = [i for i in (text.find(o) for o in openers) if i != -1]
        if not starts:
            return None
        start = min(starts)

        end = find_closing(text, start)
        span = text[start : end + 1] if end is not None else text[start:]
        parsed = _loads(span)
        if parsed is None or not _is_container(parsed[0]):
            return None
        value, repairs = parsed
        if end is None:
            repairs = (*repairs, "unclosed_span")
        return Extraction(value, ExtractionTier.BALANCED_SPAN, repairs)

    # --- Tier 4 ---

    def _field_patterns(self, text: str, hint: ShapeHint) -> Extraction | None:
        fields = hint.item_fields or hint.scalar_fields
        if not fields:
            if hint.bare_array or hint.array_field:
                return self._lines(text, hint)
            return None

        occurrences = {name: _field_values(text, name) for name in fields}
        count = max(len(values) for values in occurrences.values())
        if count == 0:
            return None

        records = [
            {name: values[i] for name, values in occurrences.items() if i < len(values)}
            for i in range(count)
        ]
        if hint.item_fields and hint.array_field:
            candidate: Any = {hint.array_field: records}
        elif hint.item_fields and hint.bare_array:
            candidate = records
        elif hint.object_field:
            candidate = {hint.object_field: records[0]}
        else:
            candidate = records[0]
        return Extraction(candidate, ExtractionTier.FIELD_PATTERN)

    @staticmethod
    def _lines(text: str, hint: ShapeHint) -> Extraction | None:
        lines = []
        for raw in strip_fences(text).splitlines():
            if not raw.strip() or _NOISE_LINE_RE.search(raw):
                continue
            if raw.rstrip().endswith(":"):
                # "Here are three options:" style lead-ins
                continue
            line = _LIST_MARKER_RE.sub("", raw).strip()
            line = _SURROUNDING_QUOTES_RE.sub(r"\1", line).strip()
            if line:
                lines.append(line)
        if not lines:
            return None
        candidate: Any = lines if hint.bare_array else {hint.array_field: lines}
        return Extraction(candidate, ExtractionTier.FIELD_PATTERN)


def _field_values(text: str, name: str) -> list[str]:
    """Every value written as ``name: "value"`` (or similar) in ``text``."""
    pattern = re.compile(
        rf"[\"']?\b{re.escape(name)}\b[\"']?\s*[:=]\s*"
        r"(?:\"((?:[^\"\\\n]|\\.)*)\"|'([^'\n]*)'|([^,\n}\]]+))",
        re.IGNORECASE,
    )
    values = []
    for match in pattern.finditer(text):
        value = next((g for g in match.groups() if g is not None), "")
        value = value.strip()
        if value:
            values.append(value)
    return values


_DEFAULT_EXTRACTOR = StructuralExtractor()


def extract(text: str | None, shape_hint: ShapeHint | None = None) -> Extraction | None:
    """Module-level convenience using a shared, stateless extractor."""
    return _DEFAULT_EXTRACTOR.extract(text, shape_hint)
