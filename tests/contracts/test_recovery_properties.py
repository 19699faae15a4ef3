"""Behavioral invariants of the recovery pipeline.

Prove the properties callers rely on hold for every built-in schema,
whatever text the model returned.
"""

import json

import pytest

from content_recovery import Provenance, RetryingInvoker, recover
from content_recovery.config import RecoverySettings
from content_recovery.schemas import BUILTIN_SCHEMAS, ObjectListField, TextListField
from tests.helpers import post, posts_json, theme, themes_json

SCHEMA_IDS = [schema.name for schema in BUILTIN_SCHEMAS]

FULL_POST = {
    "title": "Five-minute mobility flow",
    "type": "Reel",
    "channel": "Instagram",
    "topic": "Mobility",
    "audience": "Desk workers",
    "content": "Loosen up between meetings with this quick flow.",
    "cta": "Save it for your next break",
    "principle": "Reciprocity",
    "principleExplanation": "Free value builds goodwill.",
    "visual": "Coach demonstrating each stretch",
    "hashtags": ["#Mobility", "#DeskBreak"],
}

GARBAGE = [
    '{"weeklyThemes": [{"week": "x"',
    "[[[[",
    "}}}{{{",
    '"unterminated',
    "weeklyThemes: none",
    "```json\n```",
    '{"posts": 42, "suggestions": {"a": 1}}',
    "[1, 2, 3]",
    '{"post": "not an object", "campaigns": [null, [], "x"]}',
]


def assert_conforms(value, fields):
    """Every field is present and every list meets its cardinality."""
    for spec in fields:
        assert spec.name in value, spec.name
        if isinstance(spec, TextListField | ObjectListField):
            assert spec.cardinality.accepts(len(value[spec.name])), spec.name
        if isinstance(spec, TextListField):
            assert all(isinstance(item, str) for item in value[spec.name])
        if isinstance(spec, ObjectListField):
            for item in value[spec.name]:
                assert_conforms(item, spec.item_schema.fields)
        if hasattr(spec, "schema"):
            assert_conforms(value[spec.name], spec.schema.fields)


class TestRecoveryInvariants:
    """Invariant tests for recover()."""

    @pytest.mark.contract
    def test_valid_json_is_a_direct_parse(self):
        """Invariant: A conformant response is returned unchanged."""
        record = recover(themes_json(), "weekly_themes")
        assert record.provenance is Provenance.DIRECT_PARSE
        assert record.value == json.loads(themes_json())
        assert record.defaulted_fields == ()

    @pytest.mark.contract
    @pytest.mark.parametrize(
        "text, schema_name",
        [
            (themes_json(), "weekly_themes"),
            (posts_json(2), "week_posts"),
            ('["A", "B", "C"]', "suggestions"),
            ('{"posts": [%s,]}' % json.dumps(post(1)), "week_posts"),
        ],
    )
    def test_fences_are_transparent(self, text, schema_name):
        """Invariant: Wrapping a response in code fences changes nothing."""
        plain = recover(text, schema_name)
        for fenced_text in (f"```json\n{text}\n```", f"```\n{text}\n```"):
            fenced = recover(fenced_text, schema_name)
            assert fenced == plain
            assert fenced.provenance is plain.provenance

    @pytest.mark.contract
    def test_trailing_comma_is_a_normalized_parse(self):
        """Invariant: A repairable response needs no extraction."""
        text = themes_json()[:-2] + ",]}"
        record = recover(text, "weekly_themes")
        assert record.provenance is Provenance.NORMALIZED_PARSE
        assert record.value == json.loads(themes_json())

    @pytest.mark.contract
    @pytest.mark.parametrize(
        "value",
        ["Intro [part 1], basics", "Close {this} , then", 'Say: "hi"', "Rule 'one' : focus"],
    )
    def test_repair_leaves_string_values_intact(self, value):
        """Invariant: Repairs never rewrite the content of string values."""
        expected = {"weeklyThemes": [theme(1, theme=value), theme(2), theme(3)]}
        text = json.dumps(expected)[:-2] + ",]}"
        record = recover(text, "weekly_themes")
        assert record.provenance is Provenance.NORMALIZED_PARSE
        assert record.value == expected

    @pytest.mark.contract
    def test_object_embedded_in_prose_is_extracted(self):
        """Invariant: Prose around a JSON object is ignored."""
        text = (
            "Here's a post for your calendar!\n\n"
            f"{json.dumps({'post': FULL_POST})}\n\n"
            "Let me know if you'd like changes."
        )
        record = recover(text, "single_post")
        assert record.provenance is Provenance.EXTRACTED_FRAGMENT
        assert record["post"] == FULL_POST

    @pytest.mark.contract
    @pytest.mark.parametrize("schema", BUILTIN_SCHEMAS, ids=SCHEMA_IDS)
    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_response_is_fully_synthetic(self, schema, text):
        """Invariant: Nothing to recover still yields a conformant record."""
        record = recover(text, schema)
        assert record.provenance is Provenance.SYNTHETIC_FALLBACK
        assert_conforms(record.value, schema.fields)

    @pytest.mark.contract
    @pytest.mark.parametrize("schema", BUILTIN_SCHEMAS, ids=SCHEMA_IDS)
    @pytest.mark.parametrize("text", GARBAGE)
    def test_garbage_never_raises(self, schema, text):
        """Invariant: Any text yields a conformant record."""
        record = recover(text, schema)
        assert isinstance(record.provenance, Provenance)
        assert_conforms(record.value, schema.fields)

    @pytest.mark.contract
    @pytest.mark.parametrize("schema", BUILTIN_SCHEMAS, ids=SCHEMA_IDS)
    @pytest.mark.parametrize(
        "text",
        [
            None,
            themes_json(2),
            posts_json(5),
            '{"weeklyThemes": {"week": "Week 2", "theme": "Solo"}}',
            '{"weeklyThemes": [{"week": 5, "theme": "Late"}]}',
            "Sorry, I can only help with fitness questions.",
        ],
    )
    def test_recovery_is_idempotent(self, schema, text, strategy):
        """Invariant: Recovering a serialized record returns the same record."""
        first = recover(text, schema, strategy)
        again = recover(first.to_json(), schema, strategy)
        assert again == first
        assert again.provenance is Provenance.DIRECT_PARSE

    @pytest.mark.contract
    @pytest.mark.parametrize("count", [1, 3, 5])
    def test_cardinality_is_enforced(self, count):
        """Invariant: Exact cardinalities hold however many items arrived."""
        record = recover(posts_json(count), "week_posts")
        assert len(record["posts"]) == 3
        assert record["posts"][: min(count, 3)] == [post(i + 1) for i in range(min(count, 3))]


class TestRecoveryScenarios:
    """End-to-end scenarios from real model responses."""

    @pytest.mark.contract
    def test_trailing_comma_with_missing_theme(self):
        text = '{"weeklyThemes":[{"week":1,"theme":"A"},{"week":2,"theme":"B"},]}'
        record = recover(text, "weekly_themes")
        themes = record["weeklyThemes"]
        assert len(themes) == 3
        assert [t["theme"] for t in themes[:2]] == ["A", "B"]
        assert themes[2]["week"] == 3
        assert themes[2]["theme"] == "Theme for Week 3"
        assert record.provenance is Provenance.COERCED_WITH_DEFAULTS

    @pytest.mark.contract
    def test_plain_prose_yields_synthetic_posts(self, strategy):
        record = recover("I'd love to help you plan your week!", "week_posts", strategy)
        assert record.provenance is Provenance.SYNTHETIC_FALLBACK
        assert len(record["posts"]) == 3
        for item in record["posts"]:
            assert set(item) == set(post(1))
            assert all(isinstance(v, str) and v for v in item.values())

    @pytest.mark.contract
    def test_truncated_response_keeps_complete_items(self):
        text = json.dumps({"weeklyThemes": [theme(1), theme(2), theme(3)]})
        truncated = text[: text.index('"theme": "Theme 3"') + 12]
        record = recover(truncated, "weekly_themes")
        themes = record["weeklyThemes"]
        assert themes[:2] == [theme(1), theme(2)]
        assert themes[2]["week"] == 3
        assert record.provenance is Provenance.COERCED_WITH_DEFAULTS

    @pytest.mark.contract
    @pytest.mark.asyncio
    async def test_invoker_succeeds_on_third_attempt(self, flaky_call, sleep_recorder):
        request_fn = flaky_call(2, text=themes_json())
        invoker = RetryingInvoker(RecoverySettings(), sleep=sleep_recorder)

        outcome = await invoker.run(request_fn, max_attempts=3)

        assert outcome.text == themes_json()
        assert outcome.attempt_count == 3
        assert recover(outcome.text, "weekly_themes").provenance is Provenance.DIRECT_PARSE
