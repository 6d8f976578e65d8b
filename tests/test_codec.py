"""Unit tests for the Avro header codec"""
import base64
import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from avro_header_codec.base import Event, Message, FAILURE_TAG
from avro_header_codec.codec import AvroHeaderCodec
from avro_header_codec.config import CodecConfig
from avro_header_codec.errors import ConfigError, DecodeError
from avro_header_codec.failure import FailurePolicy
from avro_header_codec.schema import Schema, SchemaResolver
from avro_header_codec.serialization.avro import encode as avro_encode


INT_DEFINITION = {"type": "record", "name": "T", "fields": [{"name": "a", "type": "int"}]}
INT_SCHEMA = Schema.from_definition(INT_DEFINITION)

ARBITRARY = bytes([9, 8, 7, 6, 5, 4, 3, 2])


def make_codec(schema=INT_SCHEMA, **options) -> AvroHeaderCodec:
    config = CodecConfig(schema_uri="/unused/schema.avsc", **options)
    return AvroHeaderCodec(config, schema=schema)


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "schema.avsc"
    path.write_text(json.dumps(INT_DEFINITION))
    return path


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def test_register_loads_schema_once(schema_file):
    codec = AvroHeaderCodec(CodecConfig(schema_uri=str(schema_file)))
    assert not codec.is_registered()

    codec.register()
    schema = codec.schema
    codec.register()

    assert codec.is_registered()
    assert codec.schema is schema
    assert schema.definition == INT_DEFINITION


def test_register_fails_for_missing_schema(tmp_path):
    codec = AvroHeaderCodec(CodecConfig(schema_uri=str(tmp_path / "missing.avsc")))
    with pytest.raises(ConfigError):
        codec.register()
    assert not codec.is_registered()


def test_unregistered_codec_refuses_to_work():
    codec = AvroHeaderCodec(CodecConfig(schema_uri="/unused/schema.avsc"))
    with pytest.raises(ConfigError):
        codec.decode("VA==")
    with pytest.raises(ConfigError):
        codec.encode({"a": 1})


def test_unregistered_codec_raises_even_with_tag_on_failure():
    codec = AvroHeaderCodec(CodecConfig(schema_uri="/unused/schema.avsc", tag_on_failure=True))
    with pytest.raises(ConfigError):
        codec.decode("VA==")


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------

def test_encode_then_decode_without_header():
    """{a: 42} encodes to base64 text that decodes back to {a: 42}"""
    codec = make_codec()
    encoded = codec.encode({"a": 42})

    assert isinstance(encoded, str)
    assert encoded == "VA=="
    assert codec.decode(encoded).to_dict() == {"a": 42}


@pytest.mark.parametrize("record", [{"a": 0}, {"a": -1}, {"a": 2 ** 31 - 1}, {"a": -2 ** 31}])
def test_round_trip_identity(record):
    codec = make_codec()
    assert codec.decode(codec.encode(record)).fields == record


def test_decode_accepts_bytes_text_and_message():
    codec = make_codec()
    assert codec.decode(b"VA==")["a"] == 42
    assert codec.decode("VA==")["a"] == 42
    assert codec.decode(Message(value=b"VA==", key="k"))["a"] == 42
    assert codec.decode_message(Message(value="VA=="))["a"] == 42


def test_decode_raw_binary_falls_back_without_base64():
    """Raw Avro bytes that are not base64 reach the decoder unchanged"""
    codec = make_codec()
    assert codec.decode(b"\x0e").fields == {"a": 7}


def test_decode_passes_event_to_consumer():
    codec = make_codec()
    received = []
    event = codec.decode("VA==", received.append)
    assert received == [event]


def test_encode_calls_on_event_with_original_event():
    codec = make_codec()
    calls = []
    codec.on_event(lambda event, encoded: calls.append((event, encoded)))

    event = Event(fields={"a": 42})
    encoded = codec.encode(event)

    assert calls == [(event, encoded)]
    assert encoded == "VA=="


def test_encode_ignores_tags():
    codec = make_codec()
    assert codec.encode(Event(fields={"a": 42}, tags=["seen"])) == "VA=="


def test_encode_error_propagates_unmodified():
    """Encode never degrades, even with tag_on_failure enabled"""
    codec = make_codec(tag_on_failure=True)
    calls = []
    codec.on_event(lambda event, encoded: calls.append(encoded))

    with pytest.raises(Exception) as exc_info:
        codec.encode({"a": "not-an-int"})

    assert not isinstance(exc_info.value, DecodeError)
    assert calls == []


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

def test_decode_with_matching_marker():
    """Marker [195, 1] plus 8 fingerprint bytes is skipped"""
    codec = make_codec(header_length=10, header_marker=[195, 1])
    buffer = bytes([195, 1]) + ARBITRARY + avro_encode({"a": 7}, INT_SCHEMA)

    assert codec.decode(buffer).fields == {"a": 7}
    assert codec.decode(base64.b64encode(buffer)).fields == {"a": 7}


def test_decode_single_object_encoding():
    """Avro single-object encoding with the schema's own fingerprint"""
    codec = make_codec(header_length=10, header_marker=[0xC3, 0x01])
    buffer = b"\xc3\x01" + INT_SCHEMA.fingerprint() + avro_encode({"a": 1234}, INT_SCHEMA)
    assert codec.decode(buffer).fields == {"a": 1234}


def test_decode_without_marker_skips_header():
    codec = make_codec(header_length=5)
    buffer = b"\x00\x00\x00\x00\x01" + avro_encode({"a": 3}, INT_SCHEMA)
    assert codec.decode(buffer).fields == {"a": 3}


def test_decode_short_buffer_ignores_header():
    """A message shorter than the header is decoded as a whole"""
    codec = make_codec(header_length=10, header_marker=[195, 1])
    assert codec.decode(b"\x0e").fields == {"a": 7}


def test_marker_mismatch_tags_failure(caplog):
    """Mismatched marker rewinds to zero, decoding fails and is tagged"""
    codec = make_codec(header_length=10, header_marker=[195, 1], tag_on_failure=True)
    buffer = bytes([1, 2]) + ARBITRARY + avro_encode({"a": 7}, INT_SCHEMA)

    with caplog.at_level(logging.WARNING):
        event = codec.decode(buffer)

    assert event.to_dict() == {"message": buffer, "tags": [FAILURE_TAG]}
    assert event.failed
    mismatches = [r for r in caplog.records if "marker mismatch" in r.getMessage()]
    assert len(mismatches) == 1


def test_marker_mismatch_with_valid_unframed_payload_decodes():
    """After a mismatch the full buffer is decoded, so unframed data still works"""
    codec = make_codec(header_length=2, header_marker=[195, 1])
    assert codec.decode(avro_encode({"a": 300}, INT_SCHEMA)).fields == {"a": 300}


# ---------------------------------------------------------------------------
# Failure policy
# ---------------------------------------------------------------------------

def test_corrupt_payload_raises_without_tag_on_failure():
    codec = make_codec()
    received = []
    with pytest.raises(DecodeError) as exc_info:
        codec.decode(b"\x80", received.append)

    assert received == []
    assert exc_info.value.__cause__ is not None


def test_truncated_string_payload_raises():
    schema = Schema.from_definition({
        "type": "record",
        "name": "S",
        "fields": [{"name": "s", "type": "string"}, {"name": "n", "type": "long"}],
    })
    codec = make_codec(schema=schema)
    payload = avro_encode({"s": "hello", "n": 1}, schema)
    with pytest.raises(DecodeError):
        codec.decode(payload[:-1])


def test_tag_on_failure_preserves_original_text(caplog):
    """The original input, not the unwrapped bytes, is kept in the message field"""
    codec = make_codec(tag_on_failure=True)
    original = "gA=="  # base64 of a truncated varint

    with caplog.at_level(logging.ERROR, logger="avro_header_codec.failure"):
        event = codec.decode(Message(value=original))

    assert event.fields == {"message": original}
    assert event.tags == [FAILURE_TAG]
    assert len(caplog.records) == 1
    assert "Avro parse error" in caplog.records[0].getMessage()
    assert caplog.records[0].exc_info is not None
    assert caplog.records[0].exc_info[1].__cause__ is not None


def test_tag_on_failure_continues_with_next_message():
    codec = make_codec(tag_on_failure=True)
    assert codec.decode(b"\x80").failed
    assert codec.decode("VA==").fields == {"a": 42}


def test_failure_event_delivered_to_consumer():
    codec = make_codec(tag_on_failure=True)
    received = []
    codec.decode(b"\x80", received.append)
    assert len(received) == 1
    assert received[0].failed


class TestFailurePolicy:
    def test_reraises_when_not_tagging(self):
        error = DecodeError("boom", original=b"x")
        with pytest.raises(DecodeError) as exc_info:
            FailurePolicy(tag_on_failure=False).on_decode_failure(b"x", error)
        assert exc_info.value is error

    def test_tags_when_enabled(self):
        event = FailurePolicy(tag_on_failure=True).on_decode_failure(b"x", DecodeError("boom"))
        assert event.to_dict() == {"message": b"x", "tags": ["_avroparsefailure"]}


# ---------------------------------------------------------------------------
# Fingerprint resolver hook
# ---------------------------------------------------------------------------

OTHER_SCHEMA = Schema.from_definition({
    "type": "record",
    "name": "U",
    "fields": [{"name": "b", "type": "string"}],
})


class DictResolver(SchemaResolver):
    def __init__(self, schemas):
        self.schemas = {s.fingerprint(): s for s in schemas}
        self.requests = []

    def resolve_schema(self, fingerprint):
        self.requests.append(fingerprint)
        return self.schemas.get(fingerprint)


class TestResolver:
    def _codec(self, resolver):
        config = CodecConfig(schema_uri="/unused/schema.avsc", header_length=10, header_marker=[0xC3, 0x01])
        return AvroHeaderCodec(config, schema=INT_SCHEMA, resolver=resolver)

    def test_resolved_schema_is_used(self):
        resolver = DictResolver([OTHER_SCHEMA])
        codec = self._codec(resolver)
        buffer = b"\xc3\x01" + OTHER_SCHEMA.fingerprint() + avro_encode({"b": "hi"}, OTHER_SCHEMA)

        assert codec.decode(buffer).fields == {"b": "hi"}
        assert resolver.requests == [OTHER_SCHEMA.fingerprint()]

    def test_unknown_fingerprint_keeps_registered_schema(self):
        codec = self._codec(DictResolver([OTHER_SCHEMA]))
        buffer = b"\xc3\x01" + ARBITRARY + avro_encode({"a": 5}, INT_SCHEMA)
        assert codec.decode(buffer).fields == {"a": 5}

    def test_resolver_not_called_without_matched_header(self):
        resolver = DictResolver([OTHER_SCHEMA])
        codec = self._codec(resolver)
        codec.decode(avro_encode({"a": 5}, INT_SCHEMA))
        assert resolver.requests == []

    def test_resolver_error_goes_through_failure_policy(self):
        class BrokenResolver(SchemaResolver):
            def resolve_schema(self, fingerprint):
                raise RuntimeError("registry down")

        config = CodecConfig(
            schema_uri="/unused/schema.avsc",
            header_length=10,
            header_marker=[0xC3, 0x01],
            tag_on_failure=True,
        )
        codec = AvroHeaderCodec(config, schema=INT_SCHEMA, resolver=BrokenResolver())
        buffer = b"\xc3\x01" + ARBITRARY + b"\x0e"

        assert codec.decode(buffer).failed


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

def test_concurrent_decode_shares_schema():
    codec = make_codec(header_length=10, header_marker=[195, 1])
    messages = [
        base64.b64encode(bytes([195, 1]) + ARBITRARY + avro_encode({"a": i}, INT_SCHEMA))
        for i in range(200)
    ]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda m: codec.decode(m).fields["a"], messages))

    assert results == list(range(200))


def test_loose_base64_padding_is_decoded_as_raw_bytes():
    """Padding with non-zero leftover bits falls back to the raw bytes"""
    codec = make_codec()
    with pytest.raises(DecodeError) as exc_info:
        codec.decode("VB==")
    assert exc_info.value.original == b"VB=="
