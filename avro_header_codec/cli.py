"""Command-line interface for the Avro header codec"""
import base64
import json
import logging
import sys

import click
from tabulate import tabulate

from .base import Event
from .codec import AvroHeaderCodec
from .config import load_config
from .errors import ConfigError, DecodeError
from .schema import FINGERPRINT_ALGORITHMS

SINGLE_OBJECT_MARKER = [0xC3, 0x01]


@click.group()
@click.version_option(version='0.1.0')
@click.option('--log-level', default='WARNING', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
def main(log_level):
    """Avro Header Codec

    Decode single Avro datums, optionally base64-wrapped and prefixed with
    a header, and encode records back to base64 Avro text.
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _build_codec(config_file):
    try:
        config = load_config(config_file)
        return AvroHeaderCodec(config).register()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--message', '-m', help='Message content (base64 text or raw)')
@click.option('--message-file', '-f', type=click.Path(exists=True), help='File containing one message')
@click.option('--output', '-o', type=click.Choice(['table', 'json']), default='json', help='Output format')
def decode(config_file, message, message_file, output):
    """Decode one message into a record

    Example:
        avro-header-codec decode codec.yaml --message "VA=="
    """
    if message_file:
        with open(message_file, 'rb') as f:
            data = f.read()
    elif message is not None:
        data = message.encode('utf-8')
    else:
        click.echo("Error: Either --message or --message-file must be provided", err=True)
        sys.exit(1)

    codec = _build_codec(config_file)
    try:
        event = codec.decode(data)
    except DecodeError as e:
        click.echo(f"Decode failed: {e}", err=True)
        sys.exit(1)

    if output == 'json':
        _display_json_event(event)
    else:
        _display_table_event(event)


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--record', '-r', help='Record as a JSON object')
@click.option('--record-file', '-f', type=click.Path(exists=True), help='File containing a JSON record')
def encode(config_file, record, record_file):
    """Encode a JSON record as base64 Avro

    Example:
        avro-header-codec encode codec.yaml --record '{"a": 42}'
    """
    try:
        if record_file:
            with open(record_file, 'r') as f:
                data = json.load(f)
        elif record is not None:
            data = json.loads(record)
        else:
            click.echo("Error: Either --record or --record-file must be provided", err=True)
            sys.exit(1)
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON record: {e}", err=True)
        sys.exit(1)

    if not isinstance(data, dict):
        click.echo("Error: record must be a JSON object", err=True)
        sys.exit(1)

    codec = _build_codec(config_file)
    try:
        encoded = codec.encode(data)
    except Exception as e:
        click.echo(f"Encode failed: {e}", err=True)
        sys.exit(1)

    click.echo(encoded)


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--algorithm', '-a', type=click.Choice(list(FINGERPRINT_ALGORITHMS)),
              default='CRC-64-AVRO', show_default=True, help='Fingerprint algorithm')
def fingerprint(config_file, algorithm):
    """Print the schema fingerprint and matching header settings

    Example:
        avro-header-codec fingerprint codec.yaml --algorithm MD5
    """
    codec = _build_codec(config_file)
    digest = codec.schema.fingerprint(algorithm)

    click.echo(f"Schema: {codec.schema.uri}")
    click.echo(f"Algorithm: {algorithm}")
    click.echo(f"Fingerprint: {digest.hex()}")
    click.echo(f"header_marker: {SINGLE_OBJECT_MARKER}")
    click.echo(f"header_length: {len(SINGLE_OBJECT_MARKER) + len(digest)}")


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
def validate_config(config_file):
    """Validate a configuration file and load its schema

    Example:
        avro-header-codec validate-config codec.yaml
    """
    codec = _build_codec(config_file)
    click.echo(f"✓ Configuration is valid (schema: {codec.schema.uri})")


def _json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode('ascii')
    return str(value)


def _display_json_event(event: Event):
    """Display an event in JSON format"""
    click.echo(json.dumps(event.to_dict(), indent=2, default=_json_default))


def _display_table_event(event: Event):
    """Display an event in table format"""
    table_data = [
        [name, json.dumps(value, default=_json_default)]
        for name, value in event.to_dict().items()
    ]
    click.echo(tabulate(table_data, headers=["Field", "Value"], tablefmt="grid"))


if __name__ == '__main__':
    main()
