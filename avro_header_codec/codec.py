"""Avro codec for single, optionally framed, datums

Decoding accepts one message per call, either base64 text or raw bytes,
strips any configured header and reads one Avro datum with the registered
schema. Encoding writes one datum and base64-wraps it; headers are never
written.

Example usage::

    config = CodecConfig(schema_uri="/tmp/schema.avsc", header_length=10,
                         header_marker=[195, 1], tag_on_failure=True)
    codec = AvroHeaderCodec(config)
    codec.register()

    event = codec.decode(kafka_value)
"""
from typing import Any, Callable, Mapping, Optional, Union
import logging

from .base import Event, Message
from .config import CodecConfig
from .errors import ConfigError, DecodeError
from .failure import FailurePolicy
from .header import HeaderStripper
from .schema import Schema, SchemaResolver, load_schema
from .serialization import avro, base64_framing

logger = logging.getLogger(__name__)

RawPayload = Union[bytes, bytearray, str]


class AvroHeaderCodec:
    """Decodes framed Avro datums into events and encodes events back"""

    def __init__(
        self,
        config: CodecConfig,
        schema: Optional[Schema] = None,
        resolver: Optional[SchemaResolver] = None,
    ):
        """Initialize the codec

        Args:
            config: Codec configuration
            schema: Already loaded schema; when omitted :meth:`register`
                loads it from ``config.schema_uri``
            resolver: Optional lookup of writer schemas by header fingerprint
        """
        self.config = config
        self.resolver = resolver
        self.header_stripper = HeaderStripper(config.header_spec)
        self.failure_policy = FailurePolicy(config.tag_on_failure)
        self._schema = schema
        self._on_event: Optional[Callable[[Event, str], None]] = None

    @property
    def schema(self) -> Schema:
        if self._schema is None:
            raise ConfigError("Codec is not registered; call register() first")
        return self._schema

    def is_registered(self) -> bool:
        return self._schema is not None

    def register(self) -> 'AvroHeaderCodec':
        """Load the schema; raises ConfigError when it cannot be loaded"""
        if self._schema is None:
            self._schema = load_schema(self.config.schema_uri, timeout=self.config.schema_timeout)
        return self

    def on_event(self, callback: Callable[[Event, str], None]) -> None:
        """Register the consumer of encoded output

        The callback receives the original event and its base64 text.
        """
        self._on_event = callback

    def decode(
        self,
        data: Union[RawPayload, Message],
        consumer: Optional[Callable[[Event], None]] = None,
    ) -> Event:
        """Decode one message into an event

        Args:
            data: base64 text or raw bytes, or a Message carrying them
            consumer: Optional callback receiving the decoded event

        Returns:
            The decoded event, or a tagged failure event when
            ``tag_on_failure`` is enabled

        Raises:
            DecodeError: If decoding fails and ``tag_on_failure`` is disabled
        """
        schema = self.schema
        original = data.value if isinstance(data, Message) else data

        try:
            event = Event(fields=self._decode_record(original, schema))
        except DecodeError as error:
            event = self.failure_policy.on_decode_failure(original, error)

        if consumer is not None:
            consumer(event)
        return event

    def decode_message(self, message: Message) -> Event:
        return self.decode(message)

    def _decode_record(self, original: RawPayload, schema: Schema) -> dict:
        try:
            buffer = base64_framing.unwrap(original)

            skip = self.header_stripper.compute_skip(buffer)
            fingerprint = self.header_stripper.fingerprint(buffer, skip)
            if fingerprint and self.resolver is not None:
                resolved = self.resolver.resolve_schema(fingerprint)
                if resolved is not None:
                    schema = resolved
                else:
                    logger.debug(f"No schema for fingerprint {fingerprint.hex()}, using {schema.uri}")
        except Exception as e:
            raise DecodeError(f"Failed to prepare message for decoding: {e!r}", original=original) from e

        return avro.decode(buffer, schema, offset=skip.offset)

    def encode(self, event: Union[Event, Mapping[str, Any]]) -> str:
        """Encode one event as base64 Avro text

        Errors raised while writing the datum propagate unchanged.
        """
        schema = self.schema
        if isinstance(event, Event):
            record = event.to_dict()
        else:
            record = dict(event)
            event = Event.from_dict(record)

        encoded = base64_framing.wrap(avro.encode(record, schema))
        if self._on_event is not None:
            self._on_event(event, encoded)
        return encoded
