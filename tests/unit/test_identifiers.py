"""
Unit tests for the identifier codec.
"""

import base64

import pytest

from rail_mutations.core.exceptions import InvalidIdentifier
from rail_mutations.core.identifiers import (
    Identifier,
    decode_id,
    decode_id_for_type,
    encode_id,
    is_valid_id,
    to_display_id,
)

pytestmark = pytest.mark.unit


class TestIdentifierCodec:
    def test_encode_then_decode_keeps_both_parts(self):
        raw = encode_id("Todo", "abc123")

        assert decode_id(raw) == Identifier("Todo", "abc123")

    def test_integer_keys_decode_as_strings(self):
        assert decode_id(encode_id("Todo", 42)).key == "42"

    def test_identifiers_differ_when_type_differs(self):
        assert decode_id(encode_id("Todo", "1")) != decode_id(encode_id("User", "1"))

    @pytest.mark.parametrize("raw", [None, "", 12, "not base64!!", base64.b64encode(b"nocolon").decode()])
    def test_malformed_values_raise(self, raw):
        with pytest.raises(InvalidIdentifier):
            decode_id(raw)

    def test_type_mismatch_raises_with_id_field(self):
        raw = encode_id("User", "1")

        with pytest.raises(InvalidIdentifier) as exc_info:
            decode_id_for_type(raw, "Todo")

        assert exc_info.value.field == "id"
        assert "Invalid ID for type Todo" in str(exc_info.value)

    def test_is_valid_id(self):
        assert is_valid_id("Todo", encode_id("Todo", "1")) is True
        assert is_valid_id("Todo", encode_id("User", "1")) is False
        assert is_valid_id("Todo", "garbage") is False

    def test_display_form(self):
        assert to_display_id(Identifier("Todo", "7")) == "Todo:7"
        assert str(Identifier("Todo", "7")) == "Todo:7"
