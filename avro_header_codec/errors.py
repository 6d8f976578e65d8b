"""Exceptions raised by the Avro header codec"""
from typing import Any


class ConfigError(Exception):
    """Raised at startup when the codec cannot become operational

    Covers an unreachable or unparseable schema document and invalid
    codec configuration values.
    """


class DecodeError(Exception):
    """Raised when a single message cannot be decoded into a record

    The underlying failure is chained as ``__cause__``.
    """

    def __init__(self, message: str, original: Any = None):
        super().__init__(message)
        self.original = original
