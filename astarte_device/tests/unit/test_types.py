"""
Unit Tests for Typed Values and the JSON Payload Codec
"""

import copy
from datetime import datetime, timezone

import pytest

from astarte_device.types import UNSET, Aggregate, Individual, JsonPayloadCodec, Unset


class TestUnset:
    """The unset marker."""

    def test_singleton(self):
        assert Unset() is UNSET
        assert copy.copy(UNSET) is UNSET

    def test_falsy_but_not_none(self):
        assert not UNSET
        assert UNSET is not None
        assert repr(UNSET) == "UNSET"


class TestJsonPayloadCodec:
    """Encoding and decoding payload documents."""

    def test_empty_payload_is_unset(self, codec):
        assert codec.decode(b"") == Individual(UNSET)

    def test_unset_encodes_to_empty_payload(self, codec):
        assert codec.encode_individual(UNSET) == b""

    def test_individual_document_layout(self, codec):
        assert codec.encode_individual(23) == b'{"v":23}'

    def test_scalar_decodes_as_individual(self, codec):
        assert codec.decode(b'{"v":"on"}') == Individual("on")

    def test_array_decodes_as_individual(self, codec):
        assert codec.decode(b'{"v":[1,2]}') == Individual([1, 2])

    def test_mapping_decodes_as_aggregate(self, codec):
        assert codec.decode(b'{"v":{"a":1,"b":"x"}}') == Aggregate({"a": 1, "b": "x"})

    def test_object_round_trip(self, codec):
        values = {"blob": b"\x01\x02", "count": 3}
        assert codec.decode(codec.encode_object(values)) == Aggregate(values)

    def test_binary_is_not_mistaken_for_aggregate(self, codec):
        payload = codec.encode_individual(b"\xde\xad")
        assert codec.decode(payload) == Individual(b"\xde\xad")

    def test_datetime_round_trip(self, codec):
        ts = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        assert codec.decode(codec.encode_individual(ts)) == Individual(ts)

    def test_mapping_is_not_an_individual(self, codec):
        with pytest.raises(ValueError):
            codec.encode_individual({"a": 1})

    def test_empty_object_rejected(self, codec):
        with pytest.raises(ValueError):
            codec.encode_object({})

    @pytest.mark.parametrize("payload", [b"[1,2]", b'{"x":1}', b"42"])
    def test_non_document_rejected(self, codec, payload):
        with pytest.raises(ValueError):
            codec.decode(payload)

    def test_invalid_json_rejected(self, codec):
        with pytest.raises(ValueError):
            codec.decode(b"{not json")
