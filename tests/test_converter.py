import pytest

from datatable_wizard.errors import FormatError
from datatable_wizard.params.base import Parameter
from datatable_wizard.params.converter import (
    UNKNOWN_FORMAT_MESSAGE,
    decode_param,
    detect_format,
    encode_param,
    has_special_chars,
    parse_any,
    parse_json,
    parse_query_string,
    to_json,
    to_object,
    to_query_string,
    validate_params,
)


def _pairs(params: list[Parameter]) -> list[tuple[str, str]]:
    return [(p.key, p.value) for p in params]


class TestParseQueryString:
    def test_strips_leading_question_mark(self):
        params = parse_query_string("?a=1&b=2")
        assert _pairs(params) == [("a", "1"), ("b", "2")]

    def test_splits_on_first_equals_only(self):
        params = parse_query_string("filter=a=b=c")
        assert _pairs(params) == [("filter", "a=b=c")]

    def test_bare_key_has_empty_value(self):
        params = parse_query_string("flag&x=1")
        assert _pairs(params) == [("flag", ""), ("x", "1")]

    def test_percent_decodes_key_and_value(self):
        params = parse_query_string("full%20name=John%20Doe&q=a%2Bb")
        assert _pairs(params) == [("full name", "John Doe"), ("q", "a+b")]

    def test_plus_is_literal(self):
        assert parse_query_string("a=1+2")[0].value == "1+2"

    def test_empty_segments_and_empty_keys_skipped(self):
        params = parse_query_string("a=1&&=orphan&b=2")
        assert _pairs(params) == [("a", "1"), ("b", "2")]

    def test_empty_input(self):
        assert parse_query_string("") == []
        assert parse_query_string("?") == []

    def test_malformed_escape_raises(self):
        with pytest.raises(FormatError, match="Failed to parse query string"):
            parse_query_string("a=%ZZ")

    def test_truncated_escape_raises(self):
        with pytest.raises(FormatError):
            parse_query_string("a=%E0%A4%A")


class TestParseJson:
    def test_coerces_to_trimmed_strings(self):
        params = parse_json('[{"key": "a", "value": 1}, {"key": " b ", "value": " x "}]')
        assert _pairs(params) == [("a", "1"), ("b", "x")]

    def test_missing_value_is_empty(self):
        assert parse_json('[{"key": "a"}]')[0].value == ""

    def test_boolean_value(self):
        assert parse_json('[{"key": "active", "value": true}]')[0].value == "true"

    def test_keeps_enabled_flag(self):
        params = parse_json('[{"key": "a", "value": "1", "enabled": false}]')
        assert params[0].enabled is False

    def test_root_must_be_array(self):
        with pytest.raises(FormatError, match="JSON must be an array"):
            parse_json('{"key": "a"}')

    def test_item_without_key(self):
        with pytest.raises(FormatError, match="index 1"):
            parse_json('[{"key": "a"}, {"value": "x"}]')

    def test_invalid_json(self):
        with pytest.raises(FormatError, match="Invalid JSON"):
            parse_json("[{")


class TestToQueryString:
    def test_encodes_key_and_value(self):
        params = [Parameter(key="q", value="a&b=c"), Parameter(key="name", value="John Doe")]
        assert to_query_string(params) == "q=a%26b%3Dc&name=John%20Doe"

    def test_bare_key_for_empty_value(self):
        params = [Parameter(key="a", value="1"), Parameter(key="flag", value="")]
        assert to_query_string(params) == "a=1&flag"

    def test_skips_blank_keys_and_disabled(self):
        params = [
            Parameter(key="  ", value="x"),
            Parameter(key="off", value="1", enabled=False),
            Parameter(key="on", value="1"),
        ]
        assert to_query_string(params) == "on=1"

    def test_uri_component_safe_characters(self):
        assert to_query_string([Parameter(key="s", value="*()+#?")]) == "s=*()%2B%23%3F"

    def test_empty_list(self):
        assert to_query_string([]) == ""


class TestToJson:
    def test_pretty(self):
        assert to_json([Parameter(key="a", value="1")]) == '[\n  {\n    "key": "a",\n    "value": "1"\n  }\n]'

    def test_compact(self):
        assert to_json([Parameter(key="a", value="1")], pretty=False) == '[{"key":"a","value":"1"}]'

    def test_drops_empty_keys_marks_disabled(self):
        params = [Parameter(key="", value="x"), Parameter(key="b", value="2", enabled=False)]
        assert to_json(params, pretty=False) == '[{"key":"b","value":"2","enabled":false}]'


class TestDetectFormat:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ('[{"key": "a"}]', "json"),
            ('{"a": 1}', "json"),
            ("a=1", "queryString"),
            ("a&b", "queryString"),
            ("single", "queryString"),
            ("[broken", "queryString"),
            ("=value", "unknown"),
            ("   ", "unknown"),
        ],
    )
    def test_detect(self, text, expected):
        assert detect_format(text) == expected


class TestParseAny:
    def test_query_string(self):
        result = parse_any("page=1&size=10")
        assert result.format == "queryString"
        assert result.errors == []
        assert _pairs(result.params) == [("page", "1"), ("size", "10")]

    def test_json(self):
        result = parse_any('[{"key": "page", "value": "1"}]')
        assert result.format == "json"
        assert _pairs(result.params) == [("page", "1")]

    def test_json_object_reports_error(self):
        result = parse_any('{"page": 1}')
        assert result.format == "json"
        assert result.params == []
        assert result.errors == ["JSON must be an array"]

    def test_unknown_format(self):
        result = parse_any("=x")
        assert result.format == "unknown"
        assert result.errors == [UNKNOWN_FORMAT_MESSAGE]

    def test_malformed_query_string_does_not_raise(self):
        result = parse_any("a=%ZZ")
        assert result.params == []
        assert len(result.errors) == 1

    def test_empty_key_in_json(self):
        result = parse_any('[{"key": "", "value": "x"}]')
        assert result.params == []
        assert result.errors == ["Parameter 1: key cannot be empty"]

    def test_deeply_nested_json(self):
        result = parse_any("[" * 100000)
        assert result.format == "json"
        assert result.params == []
        assert result.errors == ["Invalid JSON: nesting is too deep"]


class TestToObject:
    def test_last_occurrence_wins(self):
        params = [Parameter(key="a", value="1"), Parameter(key="a", value="2")]
        assert to_object(params) == {"a": "2"}

    def test_skips_disabled_and_blank(self):
        params = [
            Parameter(key=" a ", value="1"),
            Parameter(key="b", value="2", enabled=False),
            Parameter(key=" ", value="3"),
        ]
        assert to_object(params) == {"a": "1"}

    def test_repeatable(self):
        params = [Parameter(key="a", value="1"), Parameter(key="b", value="")]
        assert to_object(params) == to_object(params) == {"a": "1", "b": ""}


class TestRoundTrip:
    PARAMS = [
        Parameter(key="page", value="1"),
        Parameter(key="q", value="hello world & more"),
        Parameter(key="flag", value=""),
        Parameter(key="expr", value="a=b?c#d+e*(f)"),
        Parameter(key="", value="dropped"),
    ]

    def test_query_string(self):
        restored = parse_query_string(to_query_string(self.PARAMS))
        assert _pairs(restored) == _pairs(self.PARAMS[:-1])

    def test_json(self):
        restored = parse_json(to_json(self.PARAMS))
        assert _pairs(restored) == _pairs(self.PARAMS[:-1])


class TestSingleValueHelpers:
    def test_encode_param(self):
        assert encode_param("a b/c") == "a%20b%2Fc"
        assert encode_param(None) == ""

    def test_decode_param_returns_input_when_malformed(self):
        assert decode_param("%ZZ") == "%ZZ"
        assert decode_param("a%20b") == "a b"

    def test_has_special_chars(self):
        assert has_special_chars("a+b")
        assert has_special_chars("(x)")
        assert not has_special_chars("plain-value_1")
        assert not has_special_chars("")

    def test_validate_params(self):
        result = validate_params([Parameter(key="a"), Parameter(key=" ")])
        assert result.valid is False
        assert result.errors == ["Parameter 2: key cannot be empty"]
