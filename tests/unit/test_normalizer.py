import json

import pytest

from content_recovery.response.normalizer import (
    balance_brackets,
    close_unterminated_strings,
    is_json,
    normalize,
    normalize_colon_spacing,
    normalize_with_report,
    reduce_escapes,
    remove_trailing_commas,
    strip_fences,
)


class TestFenceStripping:
    """Markdown fences around model output"""

    @pytest.mark.unit
    def test_language_tagged_fence_on_own_lines(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    @pytest.mark.unit
    def test_bare_fence(self):
        assert strip_fences('```\n["x"]\n```') == '["x"]'

    @pytest.mark.unit
    def test_inline_fence(self):
        assert strip_fences('```json {"a": 1}```') == '{"a": 1}'

    @pytest.mark.unit
    def test_text_without_fences_is_only_trimmed(self):
        assert strip_fences('  {"a": 1}\n') == '{"a": 1}'


class TestNormalize:
    """Heuristic repairs applied to malformed JSON"""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text",
        [
            '{"a": 1}',
            '{"text": "keep \\n this, ] and }"}',
            '[1, 2, {"b": [true, null]}]',
            '{"quote": "He said \\"hi\\""}',
        ],
    )
    def test_valid_json_is_never_altered(self, text):
        assert normalize(text) == text
        assert normalize_with_report(text).repairs == ()

    @pytest.mark.unit
    def test_fenced_valid_json_only_loses_its_fences(self):
        result = normalize_with_report('```json\n{"a": 1}\n```')
        assert result.text == '{"a": 1}'
        assert result.repairs == ("fences_stripped",)

    @pytest.mark.unit
    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_empty_input_yields_empty_text(self, text):
        assert normalize(text) == ""

    @pytest.mark.unit
    def test_trailing_commas_are_removed(self):
        result = normalize_with_report('{"a": [1, 2,], }')
        assert json.loads(result.text) == {"a": [1, 2]}
        assert "trailing_commas_removed" in result.repairs

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value",
        ["Intro [part 1], basics", "Close {this} , then", 'Say: "hi"', "Rule 'one' : focus"],
    )
    def test_repairs_stop_once_text_parses(self, value):
        expected = {"note": value, "tags": ["a"]}
        text = json.dumps(expected)[:-1] + ",}"
        result = normalize_with_report(text)
        assert json.loads(result.text) == expected
        assert result.repairs == ("trailing_commas_removed",)

    @pytest.mark.unit
    def test_escaped_newlines_collapse_to_spaces(self):
        assert json.loads(normalize('{"a": "line one\\nline two",}')) == {
            "a": "line one line two"
        }

    @pytest.mark.unit
    def test_document_emitted_as_escaped_string_is_unescaped(self):
        assert json.loads(normalize('{\\"a\\": \\"b\\"}')) == {"a": "b"}

    @pytest.mark.unit
    def test_string_unterminated_at_end_of_text_is_closed(self):
        assert json.loads(normalize('{"theme": "Strength basics')) == {
            "theme": "Strength basics"
        }

    @pytest.mark.unit
    def test_string_running_into_next_member_is_closed(self):
        text = '{"theme": "Strength, "phase": "Awareness"}'
        assert json.loads(normalize(text)) == {
            "theme": "Strength",
            "phase": "Awareness",
        }

    @pytest.mark.unit
    def test_truncated_document_is_closed_and_dangling_key_dropped(self):
        text = '{"weeklyThemes":[{"week":1,"theme":"A"},{"week":2,"the'
        result = normalize_with_report(text)
        assert json.loads(result.text) == {
            "weeklyThemes": [{"week": 1, "theme": "A"}, {"week": 2}]
        }
        assert "brackets_balanced" in result.repairs

    @pytest.mark.unit
    def test_normalize_never_raises_on_garbage(self):
        for text in ["}}}]]", '"""', "{[(", "\\\\\\", "```"]:
            assert isinstance(normalize(text), str)


class TestRepairSteps:
    """Individual repair steps"""

    @pytest.mark.unit
    def test_trailing_comma_inside_string_is_kept(self):
        assert remove_trailing_commas('{"a": ",]"}') == '{"a": ",]"}'

    @pytest.mark.unit
    def test_colon_spacing_outside_strings_only(self):
        assert normalize_colon_spacing('{"a" : "x : y"}') == '{"a":"x : y"}'

    @pytest.mark.unit
    def test_escaped_quotes_inside_values_are_kept(self):
        text = '{"a": "Say: \\"hi\\""}'
        assert reduce_escapes(text) == text

    @pytest.mark.unit
    def test_raw_newline_inside_value_becomes_space(self):
        assert close_unterminated_strings('{"a":"one\ntwo"}') == '{"a":"one two"}'

    @pytest.mark.unit
    def test_balance_brackets_leaves_balanced_text_alone(self):
        assert balance_brackets('{"a": [1]}') == '{"a": [1]}'

    @pytest.mark.unit
    def test_balance_brackets_appends_closers_in_order(self):
        assert balance_brackets('{"a": [1, {"b": 2') == '{"a": [1, {"b": 2}]}'

    @pytest.mark.unit
    def test_is_json(self):
        assert is_json('{"a": 1}')
        assert is_json("3")
        assert not is_json("{a: 1}")
        assert not is_json("")
