"""Serialization utilities for Avro payloads"""
from .avro import encode, decode
from .base64_framing import is_base64, unwrap, wrap

__all__ = ["encode", "decode", "is_base64", "unwrap", "wrap"]
