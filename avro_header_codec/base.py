"""Core data structures shared by the codec components"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import time

from .errors import ConfigError

FAILURE_TAG = "_avroparsefailure"


@dataclass
class Message:
    """Raw payload received from a broker, base64 text or binary"""
    value: Union[bytes, str]
    key: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    timestamp: float = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()


@dataclass
class Event:
    """Structured record handed to downstream consumers"""
    fields: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Event':
        fields = dict(data)
        tags = list(fields.pop('tags', None) or [])
        return cls(fields=fields, tags=tags)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.fields)
        if self.tags:
            data['tags'] = list(self.tags)
        return data

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    @property
    def failed(self) -> bool:
        """True when this event carries an undecodable payload"""
        return FAILURE_TAG in self.tags


@dataclass(frozen=True)
class HeaderSpec:
    """Framing bytes expected in front of every Avro datum

    Attributes:
        header_length: Total number of header bytes, 0 for no header
        header_marker: Byte values expected at the start of the header.
            The bytes between the marker and ``header_length`` usually hold
            a schema fingerprint.
    """
    header_length: int = 0
    header_marker: Tuple[int, ...] = ()

    def __post_init__(self):
        if isinstance(self.header_length, bool) or not isinstance(self.header_length, int):
            raise ConfigError(f"header_length must be an integer, got {self.header_length!r}")
        if self.header_length < 0:
            raise ConfigError(f"header_length must be >= 0, got {self.header_length}")

        marker = tuple(self.header_marker or ())
        for value in marker:
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
                raise ConfigError(f"header_marker values must be integers in 0-255, got {value!r}")
        if len(marker) > self.header_length:
            raise ConfigError(
                f"header_marker has {len(marker)} bytes but header_length is {self.header_length}"
            )
        object.__setattr__(self, 'header_marker', marker)

    @property
    def marker_bytes(self) -> bytes:
        return bytes(self.header_marker)
