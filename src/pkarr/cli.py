# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Command line interface.

Usage:
    pkarr keygen <output> [--password PASSWORD]
    pkarr identity <keyfile> [--password PASSWORD]
    pkarr publish <keyfile> "<name> <ttl> <type> <rdata>" ... [--password PASSWORD]
    pkarr resolve <identity>
    pkarr decode <identity> <payload-file>

Global options (before the command):
    --config PATH       JSON configuration file
    --relay URL         relay to use (can be repeated, overrides the configured relays)
    --timeout SECONDS   relay request timeout
    --log-level LEVEL   logging level

Environment variables:
    PKARR_RELAYS        comma separated list of relay URLs
    PKARR_TIMEOUT       relay request timeout in seconds
    PKARR_LOG_LEVEL     logging level
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

import dns.exception
import dns.message
import dns.name
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.rrset

from pkarr.__info__ import __version__
from pkarr.configuration import ClientConfiguration, load_configuration
from pkarr.records import Record, RecordError, make_response
from pkarr.relay import RelayClient, RelayError, resolve_latest
from pkarr.trust import decode_identity, encode_identity, generate_private_key, load_private_key, save_private_key

__all__ = 'main', 'parse_resource_record', 'build_message'


log = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )


def parse_resource_record(text: str) -> dns.rrset.RRset:
    """Parse a resource record written as "<name> <ttl> <type> <rdata>" (the class is always IN)"""
    try:
        name, ttl, rdtype, rdata = text.split(maxsplit=3)
    except ValueError:
        raise ValueError(f'Invalid resource record {text!r} (expected "<name> <ttl> <type> <rdata>")') from None
    try:
        record_name = dns.name.from_text(name, idna_codec=dns.name.IDNA_2008)
        record_ttl = int(ttl)
        record_type = dns.rdatatype.from_text(rdtype)
        record_data = dns.rdata.from_text(dns.rdataclass.IN, record_type, rdata, origin=dns.name.root, relativize=False)
    except (dns.exception.DNSException, ValueError) as exc:
        raise ValueError(f'Invalid resource record {text!r}: {exc}') from exc
    if not 0 <= record_ttl < 2**31:
        raise ValueError(f'Invalid resource record {text!r}: TTL is out of range')
    return dns.rrset.from_rdata(record_name, record_ttl, record_data)


def build_message(records: Sequence[str]) -> dns.message.Message:
    """Build a DNS response with the given resource records, merging those with the same name and type"""
    rrsets: dict[tuple[dns.name.Name, int], dns.rrset.RRset] = {}
    for text in records:
        rrset = parse_resource_record(text)
        key = rrset.name, rrset.rdtype
        if key in rrsets:
            rrsets[key].update(rrset)
        else:
            rrsets[key] = rrset
    return make_response(*rrsets.values())


def describe_record(record: Record[dns.message.Message]) -> str:
    lines = [
        f'identity:  {encode_identity(record.public_key)}',
        f'timestamp: {record.time.isoformat(timespec='milliseconds')}',
        '',
    ]
    for rrset in record.message.answer:
        lines.extend(rrset.to_text().splitlines())
    return '\n'.join(lines)


# Commands

def command_keygen(args: argparse.Namespace, _: ClientConfiguration) -> int:
    output = Path(args.output).expanduser()
    if output.exists():
        print(f'error: {output} already exists', file=sys.stderr)
        return EXIT_FAILURE
    private_key = generate_private_key()
    save_private_key(private_key, output, password=args.password)
    print(encode_identity(private_key.public_key()))
    return EXIT_SUCCESS


def command_identity(args: argparse.Namespace, _: ClientConfiguration) -> int:
    private_key = load_private_key(args.keyfile, password=args.password)
    print(encode_identity(private_key.public_key()))
    return EXIT_SUCCESS


async def command_publish(args: argparse.Namespace, configuration: ClientConfiguration) -> int:
    private_key = load_private_key(args.keyfile, password=args.password)
    record = Record.new(private_key, build_message(args.records), datetime.now(UTC))
    identity = encode_identity(record.public_key)
    failures = 0
    for relay_url in configuration.relays:
        async with RelayClient(relay_url, timeout=configuration.timeout) as client:
            try:
                await client.publish(record)
            except RelayError as exc:
                print(f'error: {exc}', file=sys.stderr)
                failures += 1
            else:
                log.info('Published record for %s to %s', identity, relay_url)
    print(identity)
    return EXIT_FAILURE if failures else EXIT_SUCCESS


async def command_resolve(args: argparse.Namespace, configuration: ClientConfiguration) -> int:
    public_key = decode_identity(args.identity)
    clients = [RelayClient(relay_url, timeout=configuration.timeout) for relay_url in configuration.relays]
    try:
        record = await resolve_latest(clients, public_key)
    finally:
        for client in clients:
            await client.aclose()
    print(describe_record(record))
    return EXIT_SUCCESS


def command_decode(args: argparse.Namespace, _: ClientConfiguration) -> int:
    public_key = decode_identity(args.identity)
    record = Record.from_wire(Path(args.payload).expanduser().read_bytes(), public_key=public_key)
    print(describe_record(record))
    return EXIT_SUCCESS


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='pkarr', description='Publish and resolve signed DNS records using pkarr relays.')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', '-c', type=Path, default=None, help='path to a JSON configuration file (default: ~/.config/pkarr/config.json)')
    parser.add_argument('--relay', dest='relays', action='append', default=None, metavar='URL', help='relay URL (can be repeated)')
    parser.add_argument('--timeout', type=float, default=None, metavar='SECONDS', help='relay request timeout')
    parser.add_argument('--log-level', default=None, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], type=str.upper, help='logging level')

    subparsers = parser.add_subparsers(dest='command', required=True)

    keygen = subparsers.add_parser('keygen', help='generate a new private key')
    keygen.add_argument('output', help='file to write the PEM encoded private key to')
    keygen.add_argument('--password', default=None, help='encrypt the private key with this password')
    keygen.set_defaults(handler=command_keygen)

    identity = subparsers.add_parser('identity', help='show the identity for a private key')
    identity.add_argument('keyfile', help='PEM encoded private key')
    identity.add_argument('--password', default=None, help='password for the private key')
    identity.set_defaults(handler=command_identity)

    publish = subparsers.add_parser('publish', help='sign resource records and publish them to the relays')
    publish.add_argument('keyfile', help='PEM encoded private key')
    publish.add_argument('records', nargs='+', metavar='RECORD', help='resource record as "<name> <ttl> <type> <rdata>"')
    publish.add_argument('--password', default=None, help='password for the private key')
    publish.set_defaults(handler=command_publish)

    resolve = subparsers.add_parser('resolve', help='fetch and verify the most recent record for an identity')
    resolve.add_argument('identity', help='z-base-32 encoded public key')
    resolve.set_defaults(handler=command_resolve)

    decode = subparsers.add_parser('decode', help='verify and show a payload stored in a file')
    decode.add_argument('identity', help='z-base-32 encoded public key')
    decode.add_argument('payload', help='file with the payload')
    decode.set_defaults(handler=command_decode)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    overrides = {name: value for name in ('relays', 'timeout', 'log_level') if (value := getattr(args, name)) is not None}
    try:
        configuration = replace(load_configuration(args.config), **overrides)
    except (OSError, ValueError) as exc:
        print(f'error: {exc}', file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(configuration.log_level)

    try:
        result = args.handler(args, configuration)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
    except (OSError, ValueError, RecordError, RelayError) as exc:
        print(f'error: {exc}', file=sys.stderr)
        return EXIT_FAILURE
    return result
