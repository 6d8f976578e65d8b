"""Decode failure handling"""
from typing import Any
import logging

from .base import Event, FAILURE_TAG
from .errors import DecodeError

logger = logging.getLogger(__name__)


class FailurePolicy:
    """Decides what happens to a message that could not be decoded

    With ``tag_on_failure`` disabled the error is re-raised and the caller
    aborts the message. Otherwise the original payload is passed on in a
    ``message`` field and the event is tagged with ``_avroparsefailure``.
    """

    def __init__(self, tag_on_failure: bool = False):
        self.tag_on_failure = tag_on_failure

    def on_decode_failure(self, original_message: Any, error: DecodeError) -> Event:
        if not self.tag_on_failure:
            raise error

        logger.error(
            f"Avro parse error, original data now in message field: {error}",
            exc_info=error,
        )
        return Event(fields={'message': original_message}, tags=[FAILURE_TAG])
