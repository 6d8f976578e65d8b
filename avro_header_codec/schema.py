"""Avro schema loading

The schema is fetched and parsed once when the codec is registered. After
that it is only read, so a single :class:`Schema` can be shared by any
number of concurrent decode/encode calls.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname
import hashlib
import json
import logging

import fastavro
import requests
from fastavro.schema import fingerprint as avro_fingerprint
from fastavro.schema import to_parsing_canonical_form

from .errors import ConfigError

logger = logging.getLogger(__name__)

FINGERPRINT_ALGORITHMS = ('CRC-64-AVRO', 'MD5', 'SHA-256')
_HASHLIB_NAMES = {'MD5': 'md5', 'SHA-256': 'sha256'}


@dataclass(frozen=True)
class Schema:
    """Parsed Avro schema together with the document it came from"""
    definition: Any
    parsed: Any
    uri: str = '<inline>'

    @classmethod
    def from_definition(cls, definition: Any, uri: str = '<inline>') -> 'Schema':
        """Parse an Avro schema definition (dict, list or type name)

        Raises:
            ConfigError: If fastavro rejects the definition
        """
        try:
            parsed = fastavro.parse_schema(definition)
        except Exception as e:
            raise ConfigError(f"Invalid Avro schema from {uri}: {e}") from e
        return cls(definition=definition, parsed=parsed, uri=uri)

    def canonical_form(self) -> str:
        return to_parsing_canonical_form(self.definition)

    def fingerprint(self, algorithm: str = 'CRC-64-AVRO') -> bytes:
        """Fingerprint of the parsing canonical form

        CRC-64-AVRO yields the 8 little-endian bytes used by Avro
        single-object encoding, MD5 yields 16 bytes and SHA-256 32 bytes.
        """
        if algorithm not in FINGERPRINT_ALGORITHMS:
            raise ValueError(
                f"Unsupported fingerprint algorithm: {algorithm}. "
                f"Expected one of {', '.join(FINGERPRINT_ALGORITHMS)}"
            )
        canonical = self.canonical_form()
        if algorithm == 'CRC-64-AVRO':
            return bytes.fromhex(avro_fingerprint(canonical, algorithm))
        return hashlib.new(_HASHLIB_NAMES[algorithm], canonical.encode('utf-8')).digest()


class SchemaResolver(ABC):
    """Looks up the writer schema for a fingerprint found in a message header"""

    @abstractmethod
    def resolve_schema(self, fingerprint: bytes) -> Optional[Schema]:
        """Return the schema for *fingerprint*, or None to keep the registered one"""
        pass


def read_schema_document(uri: str, timeout: float = 10.0) -> str:
    """Fetch the raw schema document addressed by *uri*

    Args:
        uri: ``http``/``https`` URL, ``file`` URI or plain filesystem path
        timeout: HTTP timeout in seconds

    Returns:
        The document text
    """
    parsed_uri = urlparse(uri)
    scheme = parsed_uri.scheme.lower()

    if scheme in ('http', 'https'):
        try:
            response = requests.get(uri, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ConfigError(f"Failed to fetch schema from {uri}: {e}") from e
        return response.text

    if scheme == 'file':
        path = Path(url2pathname(parsed_uri.path))
    elif scheme == '' or len(scheme) == 1:
        # Plain path; a single letter scheme is a Windows drive
        path = Path(uri)
    else:
        raise ConfigError(f"Unsupported schema URI scheme '{scheme}' in {uri}")

    try:
        return path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigError(f"Failed to read schema from {uri}: {e}") from e


def load_schema(uri: str, timeout: float = 10.0) -> Schema:
    """Fetch and parse the Avro schema at *uri*

    Raises:
        ConfigError: If the document cannot be fetched or is not a valid schema
    """
    if not uri:
        raise ConfigError("schema_uri is required")

    document = read_schema_document(uri, timeout=timeout)
    try:
        definition = json.loads(document)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Schema document at {uri} is not valid JSON: {e}") from e

    schema = Schema.from_definition(definition, uri=uri)
    logger.info(f"Loaded Avro schema from {uri}")
    return schema
