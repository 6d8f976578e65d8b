"""Codec configuration"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import json

import yaml

from .base import HeaderSpec
from .errors import ConfigError


@dataclass
class CodecConfig:
    """Settings for one codec instance

    Attributes:
        schema_uri: ``http``/``https``/``file`` URI or path of the schema
        header_length: Number of header bytes before the Avro datum
        header_marker: Marker byte values at the start of the header
        tag_on_failure: Emit tagged events instead of raising on decode errors
        schema_timeout: HTTP timeout in seconds for fetching the schema
    """
    schema_uri: str
    header_length: int = 0
    header_marker: List[int] = field(default_factory=list)
    tag_on_failure: bool = False
    schema_timeout: float = 10.0

    def __post_init__(self):
        if not self.schema_uri or not isinstance(self.schema_uri, str):
            raise ConfigError("schema_uri is required")
        if not isinstance(self.tag_on_failure, bool):
            raise ConfigError(f"tag_on_failure must be a boolean, got {self.tag_on_failure!r}")
        if not isinstance(self.header_marker, (list, tuple)):
            raise ConfigError(f"header_marker must be a list of integers, got {self.header_marker!r}")
        # Validates length and marker values
        self.header_spec

    @property
    def header_spec(self) -> HeaderSpec:
        return HeaderSpec(
            header_length=self.header_length,
            header_marker=tuple(self.header_marker),
        )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'CodecConfig':
        """Build a config from a plain dict, e.g. a loaded YAML document"""
        if not isinstance(config, dict):
            raise ConfigError(f"Codec configuration must be a mapping, got {type(config).__name__}")

        known = {'schema_uri', 'header_length', 'header_marker', 'tag_on_failure', 'schema_timeout'}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {unknown}")

        return cls(
            schema_uri=config.get('schema_uri'),
            header_length=config.get('header_length', 0),
            header_marker=config.get('header_marker') or [],
            tag_on_failure=config.get('tag_on_failure', False),
            schema_timeout=config.get('schema_timeout', 10.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_uri': self.schema_uri,
            'header_length': self.header_length,
            'header_marker': list(self.header_marker),
            'tag_on_failure': self.tag_on_failure,
            'schema_timeout': self.schema_timeout,
        }


def load_config(path: str) -> CodecConfig:
    """Load a codec configuration from a YAML or JSON file"""
    config_path = Path(path)
    try:
        with open(config_path, 'r') as f:
            if config_path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load configuration from {path}: {e}") from e

    return CodecConfig.from_dict(data or {})
