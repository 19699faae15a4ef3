"""
Heuristic repair of loosely formatted JSON text

The repairs target the malformations truncated or chatty model output shows in
practice: markdown fences, trailing commas, doubled escapes and strings that
were never closed. This is not a general parser. Text that already parses as
JSON is returned unchanged apart from fence and whitespace stripping.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import json
import logging
import re

log = logging.getLogger(__name__)

_FENCE_LINE_RE = re.compile(r"^[ \t]*```[\w+-]*[ \t]*$\n?", re.MULTILINE)
_LEADING_FENCE_RE = re.compile(r"^```[\w+-]*")
_TRAILING_FENCE_RE = re.compile(r"```$")

_ESCAPED_NEWLINE_RE = re.compile(r"(?<!\\)(?:\\r)?\\n")
_STRUCTURAL_ESCAPED_QUOTE_RE = re.compile(r'^\s*[{\[][\s{\[]*\\"')
_DOUBLED_ESCAPE_RE = re.compile(r'\\\\(\\\\|\\")')

_CLOSER_AHEAD_RE = re.compile(r"\s*[}\]]")
_MEMBER_AHEAD_RE = re.compile(r',\s*"[^"\n]*"\s*:')
_CLOSE_AHEAD_RE = re.compile(r"\s*[}\]]\s*(?:[,}\]]|$)")
_NEXT_LINE_MEMBER_RE = re.compile(r'\r?\n\s*(?:"[^"\n]*"\s*:|[}\]])')
_DANGLING_MEMBER_RE = re.compile(r'([{,])\s*"[^"\n]*"\s*:?\s*$')

_CLOSERS = {"{": "}", "[": "]"}


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Normalized text and the names of the repairs that changed it."""

    text: str
    repairs: tuple[str, ...] = ()


def is_json(text: str) -> bool:
    """True if ``text`` is a single syntactically valid JSON value."""
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def strip_fences(text: str) -> str:
    """Remove surrounding markdown code fences and fence-only lines, then trim."""
    cleaned = _FENCE_LINE_RE.sub("", text).strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def normalize(text: str | None) -> str:
    """Return ``text`` with fences stripped and common JSON defects repaired."""
    return normalize_with_report(text).text


def normalize_with_report(text: str | None) -> NormalizationResult:
    """Normalize ``text`` and report which repairs were applied.

    Never raises; at worst the input comes back trimmed.
    """
    if not text:
        return NormalizationResult("")

    cleaned = strip_fences(text)
    repairs: list[str] = []
    if cleaned != text.strip():
        repairs.append("fences_stripped")

    if is_json(cleaned):
        return NormalizationResult(cleaned, tuple(repairs))

    for name, step in _REPAIR_STEPS:
        repaired = step(cleaned)
        if repaired == cleaned:
            continue
        repairs.append(name)
        cleaned = repaired
        # Later steps look inside strings; stop once the text parses.
        if is_json(cleaned):
            break

    if repairs:
        log.debug("Normalization applied repairs: %s", ", ".join(repairs))
    return NormalizationResult(cleaned, tuple(repairs))


# --- Repair steps, applied in order ---


def collapse_escaped_newlines(text: str) -> str:
    """Replace literal ``\\n`` escapes with a single space."""
    return _ESCAPED_NEWLINE_RE.sub(" ", text)


def reduce_escapes(text: str) -> str:
    """Undo doubled quote/backslash escapes and escaped structural quotes."""
    if "\\\\\\\"" in text:
        text = _DOUBLED_ESCAPE_RE.sub(r"\1", text)
    if _STRUCTURAL_ESCAPED_QUOTE_RE.match(text):
        # The whole document was emitted as an escaped string literal.
        text = text.replace('\\"', '"')
    return text


def remove_trailing_commas(text: str) -> str:
    """Drop commas that sit directly before a closing brace or bracket."""
    out: list[str] = []
    in_string = False
    escape = False
    for i, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "," and _CLOSER_AHEAD_RE.match(text, i + 1):
            continue
        out.append(ch)
    return "".join(out)


def normalize_colon_spacing(text: str) -> str:
    """Remove whitespace around colons outside string literals."""
    out: list[str] = []
    in_string = False
    escape = False
    skip_space = False
    for ch in text:
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            out.append(ch)
            continue
        if skip_space and ch.isspace():
            continue
        skip_space = False
        if ch == '"':
            in_string = True
        elif ch == ":":
            while out and out[-1].isspace():
                out.pop()
            skip_space = True
        out.append(ch)
    return "".join(out)


def close_unterminated_strings(text: str) -> str:
    """Insert closing quotes for string values that run past their boundary.

    A value string is closed before ``, "next":``, before a closing brace that
    ends the member, before a line break that starts a new member, and at the
    end of the text. Other raw line breaks inside strings become spaces.
    """
    out: list[str] = []
    stack: list[str] = []
    in_string = False
    is_value = False
    escape = False
    prev_sig = ""
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
                prev_sig = '"'
            elif ch in "\r\n":
                if _NEXT_LINE_MEMBER_RE.match(text, i):
                    out.append('"')
                    in_string = False
                    prev_sig = '"'
                    continue
                if ch == "\n":
                    out.append(" ")
                i += 1
                continue
            elif is_value and (
                _MEMBER_AHEAD_RE.match(text, i) or _CLOSE_AHEAD_RE.match(text, i)
            ):
                out.append('"')
                in_string = False
                prev_sig = '"'
                continue
            out.append(ch)
            i += 1
            continue

        if ch == '"':
            in_string = True
            is_value = prev_sig == ":" or (bool(stack) and stack[-1] == "[")
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]" and stack:
            stack.pop()
        if not ch.isspace():
            prev_sig = ch
        out.append(ch)
        i += 1

    if in_string:
        out.append('"')
    return "".join(out)


def balance_brackets(text: str) -> str:
    """Close brackets left open by truncated output.

    A trailing member that never received a value is dropped first.
    """
    stack: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]" and stack and _CLOSERS[stack[-1]] == ch:
            stack.pop()

    if not stack or in_string:
        return text

    body = text.rstrip()
    if stack[-1] == "{":
        body = _DANGLING_MEMBER_RE.sub(r"\1", body)
    body = body.rstrip()
    closers = "".join(_CLOSERS[opener] for opener in reversed(stack))
    return remove_trailing_commas(body + closers)


_REPAIR_STEPS: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("escaped_newlines_collapsed", collapse_escaped_newlines),
    ("escapes_reduced", reduce_escapes),
    ("trailing_commas_removed", remove_trailing_commas),
    ("colon_spacing_normalized", normalize_colon_spacing),
    ("unterminated_strings_closed", close_unterminated_strings),
    ("brackets_balanced", balance_brackets),
)
