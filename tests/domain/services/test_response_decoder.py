"""Tests for the tolerant JSON response decoder."""

import pytest

from verity.domain.errors import ResponseParseError
from verity.domain.services.response_decoder import decode_json_object


def test_decodes_plain_object():
    assert decode_json_object('  {"claims": []}  ') == {"claims": []}


def test_decodes_fenced_block():
    text = 'Here you go:\n```json\n{"verification_status": "verified"}\n```\nThanks'
    assert decode_json_object(text) == {"verification_status": "verified"}


def test_decodes_untagged_fence():
    assert decode_json_object('```\n{"a": 1}\n```') == {"a": 1}


def test_decodes_object_surrounded_by_prose():
    text = 'Sure! {"reasoning": "ok", "nested": {"x": 1}} Hope this helps.'
    assert decode_json_object(text) == {"reasoning": "ok", "nested": {"x": 1}}


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_response_fails(text):
    with pytest.raises(ResponseParseError, match="Empty"):
        decode_json_object(text)


def test_no_object_fails():
    with pytest.raises(ResponseParseError, match="No JSON object"):
        decode_json_object("I cannot help with that.")


def test_broken_object_fails():
    with pytest.raises(ResponseParseError, match="Invalid JSON"):
        decode_json_object("{not: valid json}")


def test_top_level_array_is_not_an_object():
    with pytest.raises(ResponseParseError):
        decode_json_object("[1, 2, 3]")
