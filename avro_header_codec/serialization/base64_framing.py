"""Base64 wrapping of Avro payloads"""
import base64
import re
from typing import Union

# RFC 4648 standard alphabet, padded, no line breaks, zero pad bits
_BASE64_PATTERN = re.compile(
    rb'(?:[A-Za-z0-9+/]{4})*'
    rb'(?:[A-Za-z0-9+/][AQgw]==|[A-Za-z0-9+/]{2}[AEIMQUYcgkosw048]=)?'
)


def to_bytes(data: Union[bytes, bytearray, memoryview, str]) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    return bytes(data)


def is_base64(data: Union[bytes, str]) -> bool:
    """Check whether *data* is strict base64 text"""
    return _BASE64_PATTERN.fullmatch(to_bytes(data)) is not None


def unwrap(data: Union[bytes, str]) -> bytes:
    """Return the decoded payload if *data* is base64, else the raw bytes"""
    raw = to_bytes(data)
    if is_base64(raw):
        return base64.b64decode(raw, validate=True)
    return raw


def wrap(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')
