"""Single-datum Avro binary encoding

Wraps fastavro's schemaless reader and writer so callers work with a loaded
:class:`~avro_header_codec.schema.Schema` and plain byte buffers. No header
framing is read or written here.

Example usage::

    from avro_header_codec.schema import Schema
    from avro_header_codec.serialization.avro import encode, decode

    schema = Schema.from_definition({
        "type": "record",
        "name": "Event",
        "fields": [
            {"name": "id", "type": "string"},
            {"name": "value", "type": "int"},
        ],
    })

    data = {"id": "abc", "value": 42}
    raw = encode(data, schema)
    decoded = decode(raw, schema)
    assert decoded == data
"""
import io
from typing import Any, Dict, Mapping

import fastavro

from ..errors import DecodeError
from ..schema import Schema


def encode(record: Mapping[str, Any], schema: Schema) -> bytes:
    """Serialize *record* to Avro binary format using *schema*.

    Errors raised by the writer are not wrapped.

    Args:
        record: Field name to value mapping. Keys not named by the schema
            are ignored.
        schema: The loaded schema.

    Returns:
        Avro-encoded bytes representing the record.
    """
    buf = io.BytesIO()
    fastavro.schemaless_writer(buf, schema.parsed, record)
    return buf.getvalue()


def decode(data: bytes, schema: Schema, offset: int = 0) -> Dict[str, Any]:
    """Deserialize one Avro datum from *data* starting at *offset*.

    The datum must account for every remaining byte of the buffer.

    Args:
        data: Buffer holding the datum, possibly preceded by framing bytes.
        schema: The schema the datum was written with.
        offset: Number of leading bytes to skip.

    Returns:
        The deserialized record.

    Raises:
        DecodeError: If the bytes are malformed, truncated, followed by
            trailing bytes, or do not decode to a record.
    """
    buf = io.BytesIO(data)
    buf.seek(offset)
    try:
        record = fastavro.schemaless_reader(buf, schema.parsed)
    except Exception as e:
        raise DecodeError(f"Avro decode error: {e!r}", original=data) from e

    remaining = len(data) - buf.tell()
    if remaining:
        raise DecodeError(
            f"Avro decode error: {remaining} trailing bytes after datum", original=data
        )
    if not isinstance(record, dict):
        raise DecodeError(
            f"Avro decode error: expected a record, got {type(record).__name__}", original=data
        )
    return record
