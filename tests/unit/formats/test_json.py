"""
Unit tests for the JSON format strategy.
"""

import pytest

from jsonvalue.config import reset_config
from jsonvalue.dom import Array, Boolean, Kind, Null, Number, NumberType, Object, String
from jsonvalue.formats.json import (
    JSONParseError,
    JSONStrategy,
    parse_json,
    render_json,
    tokenize,
)


@pytest.fixture(autouse=True)
def default_config(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.delenv("JSONVALUE_MAX_DEPTH", raising=False)
    monkeypatch.delenv("JSONVALUE_DUPLICATE_KEYS", raising=False)
    reset_config()
    yield
    reset_config()


class TestJSONStrategy:
    def setup_method(self):
        self.strategy = JSONStrategy()

    def test_name(self):
        assert self.strategy.name == "json"

    def test_extensions(self):
        assert self.strategy.extensions == [".json"]

    def test_detect_containers(self):
        assert self.strategy.detect('  {"a": 1}')
        assert self.strategy.detect("[1, 2]")

    def test_detect_rejects_plain_text(self):
        assert not self.strategy.detect("hello")
        assert not self.strategy.detect("")

    def test_render_is_canonical_text(self):
        value = Array([Null(), Boolean(True)])
        assert self.strategy.render(value) == "[null, true]"
        assert render_json(value) == "[null, true]"


class TestTokenize:
    def test_skips_whitespace(self):
        kinds = [t.kind for t in tokenize(' [ 1 ,\n"a" ]\t')]
        assert kinds == ["PUNCT", "NUMBER", "PUNCT", "STRING", "PUNCT"]

    def test_positions(self):
        tokens = list(tokenize("[true]"))
        assert [t.pos for t in tokens] == [0, 1, 5]

    def test_unexpected_character(self):
        with pytest.raises(JSONParseError, match="Unexpected character"):
            list(tokenize("[1, @]"))

    def test_unterminated_string(self):
        with pytest.raises(JSONParseError, match="Unterminated string"):
            list(tokenize('["abc'))


class TestParseScalars:
    def test_literals(self):
        assert parse_json("null") == Null()
        assert parse_json("true") == Boolean(True)
        assert parse_json("false") == Boolean(False)

    def test_string(self):
        assert parse_json('"a\\nb"') == String("a\nb")

    def test_integer(self):
        value = parse_json("-12")
        assert value == Number(-12)
        assert value.type is NumberType.INTEGER

    @pytest.mark.parametrize("text, expected", [("1.5", 1.5), ("1e3", 1000.0), ("-0.25E-1", -0.025)])
    def test_float(self, text, expected):
        value = parse_json(text)
        assert value.type is NumberType.FLOAT
        assert float(value) == expected

    def test_root_is_detached(self):
        assert parse_json("[1]").owner is None


class TestParseContainers:
    def test_empty(self):
        assert parse_json("[]") == Array()
        assert parse_json("{}") == Object()

    def test_array(self):
        value = parse_json('[null, true, "a"]')
        assert value.kind is Kind.ARRAY
        assert value.to_string() == '[null, true, "a"]'

    def test_object(self):
        value = parse_json('{"b": 2, "a": [1, {}]}')
        assert value.kind is Kind.OBJECT
        assert value.to_string() == '{"a":[1, {}], "b":2}'

    def test_children_owned_by_parent(self):
        value = parse_json('{"a": [1]}')
        assert value["a"].owner is value
        assert value["a"][0].owner is value["a"]

    def test_duplicate_key_keeps_last(self):
        assert parse_json('{"k": 1, "k": 2}').to_string() == '{"k":2}'

    def test_duplicate_key_error_policy(self):
        with pytest.raises(JSONParseError, match="Duplicate key"):
            parse_json('{"k": 1, "k": 2}', duplicate_keys="error")

    def test_duplicate_key_policy_from_env(self, monkeypatch):
        monkeypatch.setenv("JSONVALUE_DUPLICATE_KEYS", "error")
        reset_config()
        with pytest.raises(JSONParseError, match="Duplicate key"):
            parse_json('{"k": 1, "k": 2}')


class TestParseErrors:
    @pytest.mark.parametrize(
        "text, message",
        [
            ("", "Unexpected end of input"),
            ("[1, 2", "Unexpected end of input"),
            ("[1 2]", "Expected ',' or ']'"),
            ('{"a" 1}', "Expected ':'"),
            ('{"a": 1 "b": 2}', "Expected ',' or '}'"),
            ("{1: 2}", "Expected a string key"),
            ("[1,]", "Expected a value"),
            ("1 2", "Extra data"),
            ("01", "Extra data"),
            ('"\\q"', "Bad string"),
            ("1e400", "Number out of range"),
        ],
    )
    def test_malformed(self, text, message):
        with pytest.raises(JSONParseError, match=message):
            parse_json(text)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_json("[")

    def test_error_position(self):
        with pytest.raises(JSONParseError) as excinfo:
            parse_json('{\n  "a": @\n}')
        err = excinfo.value
        assert err.pos == 9
        assert err.lineno == 2
        assert err.colno == 8

    def test_depth_limit(self):
        assert parse_json("[[1]]", max_depth=2) == Array([Array([Number(1)])])
        with pytest.raises(JSONParseError, match="Nesting deeper than 2"):
            parse_json("[[[1]]]", max_depth=2)

    def test_depth_limit_from_env(self, monkeypatch):
        monkeypatch.setenv("JSONVALUE_MAX_DEPTH", "1")
        reset_config()
        with pytest.raises(JSONParseError, match="Nesting"):
            parse_json('{"a": []}')


class TestDeepDocuments:
    def test_parses_at_default_depth_limit(self):
        text = "[" * 512 + "]" * 512
        value = parse_json(text)
        assert value.to_string() == text
        with pytest.raises(JSONParseError, match="Nesting deeper than 512"):
            parse_json("[" + text + "]")

    def test_deep_objects(self):
        text = '{"k":' * 512 + "null" + "}" * 512
        value = parse_json(text)
        assert value.to_string() == text
        assert value.clone() == value

    def test_depth_far_past_interpreter_recursion_limit(self):
        depth = 3000
        text = "[1, " * depth + "[]" + "]" * depth
        value = parse_json(text, max_depth=depth + 1)
        assert value.to_string() == text
        assert value.clone().to_string() == text

    def test_deep_mismatched_closer(self):
        with pytest.raises(JSONParseError, match="Expected ',' or ']'"):
            parse_json("[" * 100 + "1}")


class TestParseLongIntegers:
    def test_integer_past_digit_limit(self):
        text = "1" + "0" * 5000
        value = parse_json(text)
        assert value == Number(10**5000)
        assert value.type is NumberType.INTEGER
        assert value.to_string() == text

    def test_negative_integer_past_digit_limit(self):
        text = "-9" + "8" * 6000
        assert parse_json(text).to_string() == text

    def test_float_overflow_is_still_out_of_range(self):
        with pytest.raises(JSONParseError, match="Number out of range"):
            parse_json("1" + "0" * 400 + ".0")
