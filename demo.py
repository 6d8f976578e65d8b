"""
Demo script showing the Avro header codec in action

This script runs without a schema file or a broker; the schema is built inline.
"""
from avro_header_codec.codec import AvroHeaderCodec
from avro_header_codec.config import CodecConfig
from avro_header_codec.errors import DecodeError
from avro_header_codec.schema import Schema
from avro_header_codec.serialization.avro import encode as avro_encode


SCHEMA = Schema.from_definition({
    "type": "record",
    "name": "SensorEvent",
    "fields": [
        {"name": "sensor_id", "type": "string"},
        {"name": "reading", "type": "int"},
    ],
})


def demo_codec():
    """Demonstrate decoding and encoding"""
    print("=" * 80)
    print("AVRO HEADER CODEC - DEMO")
    print("=" * 80)
    print()

    # Demo 1: Encode and decode without a header
    print("1. ENCODE / DECODE")
    print("-" * 80)
    codec = AvroHeaderCodec(CodecConfig(schema_uri="inline"), schema=SCHEMA)
    encoded = codec.encode({"sensor_id": "s-1", "reading": 42})
    event = codec.decode(encoded)
    print(f"   Encoded: {encoded}")
    print(f"   Decoded: {event.to_dict()}")
    print()

    # Demo 2: Single-object encoding header
    print("2. SINGLE-OBJECT HEADER")
    print("-" * 80)
    framed_codec = AvroHeaderCodec(
        CodecConfig(schema_uri="inline", header_length=10, header_marker=[0xC3, 0x01]),
        schema=SCHEMA,
    )
    framed = b"\xc3\x01" + SCHEMA.fingerprint() + avro_encode({"sensor_id": "s-2", "reading": 7}, SCHEMA)
    print(f"   Message: {framed.hex()}")
    print(f"   Decoded: {framed_codec.decode(framed).to_dict()}")
    print()

    # Demo 3: Tagged failure
    print("3. TAG ON FAILURE")
    print("-" * 80)
    tagging_codec = AvroHeaderCodec(
        CodecConfig(schema_uri="inline", tag_on_failure=True),
        schema=SCHEMA,
    )
    event = tagging_codec.decode(b"\x80")
    print(f"   Decoded: {event.to_dict()}")
    print()

    # Demo 4: Raised failure
    print("4. RAISE ON FAILURE")
    print("-" * 80)
    try:
        codec.decode(b"\x80")
    except DecodeError as e:
        print(f"   Error: {e}")
    print()


if __name__ == '__main__':
    demo_codec()
