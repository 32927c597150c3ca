import json

import pytest

from clipkeep.json_sniff import format_json, looks_like_json, unwrap_json


@pytest.mark.parametrize(
    "text",
    [
        '{"a":1}',
        "[1, 2, 3]",
        "  \n{\"nested\": {\"b\": [true, null]}}\n ",
        '"{\\"a\\":1}"',
        '[{\\"a\\":1}]',
        '[{\\"activityId\\":\\"88f2564500714520b1f1a99c75da0001\\",\\"actualPrice\\":40,\\"addPrice\\":10.0}]',
    ],
)
def test_detects_json(text):
    assert looks_like_json(text)


@pytest.mark.parametrize(
    "text",
    [
        "hello world",
        '{"a":1',
        "",
        "   ",
        "42",
        '"just a string"',
        "{not json}",
        '{"a":1]',
        "[1, 2",
    ],
)
def test_rejects_non_json(text):
    assert not looks_like_json(text)


def test_direct_stage_wins():
    assert unwrap_json('{"a": 1}') == {"a": 1}


def test_quoted_unescape():
    assert unwrap_json('"{\\"a\\":1}"') == {"a": 1}


def test_raw_escaped_fallback():
    assert unwrap_json('[{\\"a\\":1}]') == [{"a": 1}]


def test_format_sorts_keys():
    out = format_json('{"b": 1, "a": {"d": 2, "c": 3}}')
    assert out == json.dumps({"a": {"c": 3, "d": 2}, "b": 1}, indent=2, sort_keys=True)
    assert out.index('"a"') < out.index('"b"')


def test_format_unescapes_before_printing():
    out = format_json('[{\\"z\\":1,\\"y\\":2}]')
    assert out is not None
    assert json.loads(out) == [{"y": 2, "z": 1}]
    assert "\\" not in out


def test_format_returns_none_for_plain_text():
    assert format_json("hello world") is None


def test_deeply_nested_text_is_plain_text():
    text = "[" * 100000 + "]" * 100000
    assert not looks_like_json(text)
    assert format_json(text) is None
    assert not looks_like_json('"' + text + '"')


@pytest.mark.parametrize("text", ["[NaN]", '{"a": Infinity}', "[-Infinity]", '[{\\"a\\":NaN}]'])
def test_non_standard_constants_are_rejected(text):
    assert not looks_like_json(text)
