# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import logging
from collections.abc import Iterable
from types import TracebackType
from typing import Any, Self

import httpx
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from pkarr.records import Record, RecordError, dns_codec
from pkarr.records.codec import MessageCodec
from pkarr.trust import encode_identity

from .exceptions import RecordNotFoundError, RelayConnectionError, RelayError, RelayResponseError

__all__ = 'RelayClient', 'resolve_latest'


log = logging.getLogger(__name__)


PAYLOAD_CONTENT_TYPE = 'application/pkarr.org/relays#payload'


class RelayClient:
    """
    Client for an HTTP relay that stores records by public key.

    Records are stored with a PUT request and retrieved with a GET request
    at the relay URL followed by the z-base-32 identity of the public key.
    The relay is not trusted: every payload it returns is verified against
    the public key it was requested for.
    """

    def __init__(self, relay_url: str, *, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.relay_url = relay_url.rstrip('/')
        self._client = httpx.AsyncClient(base_url=f'{self.relay_url}/', timeout=httpx.Timeout(timeout), transport=transport)

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({self.relay_url!r})'

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def publish(self, record: Record[Any]) -> None:
        identity = encode_identity(record.public_key)
        log.debug('Publishing record for %s (timestamp %d) to %s', identity, record.timestamp, self.relay_url)
        response = await self._request('PUT', identity, content=record.to_wire(), headers={'Content-Type': PAYLOAD_CONTENT_TYPE})
        if not response.is_success:
            raise RelayResponseError(f'{self.relay_url} rejected the record for {identity}: {response.status_code} {response.reason_phrase}', status_code=response.status_code)

    async def resolve[M](self, public_key: Ed25519PublicKey, *, codec: MessageCodec[M] = dns_codec) -> Record[M]:
        identity = encode_identity(public_key)
        log.debug('Resolving record for %s from %s', identity, self.relay_url)
        response = await self._request('GET', identity)
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RecordNotFoundError(f'{self.relay_url} has no record for {identity}')
        if not response.is_success:
            raise RelayResponseError(f'{self.relay_url} failed to return the record for {identity}: {response.status_code} {response.reason_phrase}', status_code=response.status_code)
        return Record.from_wire(response.content, public_key=public_key, codec=codec)

    async def _request(self, method: str, path: str, **kw: Any) -> httpx.Response:  # noqa: ANN401
        try:
            return await self._client.request(method, path, **kw)
        except httpx.HTTPError as exc:
            log.warning('%s request to %s failed: %s', method, self.relay_url, exc)
            raise RelayConnectionError(f'{method} request to {self.relay_url} failed: {exc}') from exc


async def resolve_latest[M](clients: Iterable[RelayClient], public_key: Ed25519PublicKey, *, codec: MessageCodec[M] = dns_codec) -> Record[M]:
    """
    Resolve a record from multiple relays at once.

    Returns the valid record with the most recent timestamp. Relays that
    fail or return invalid payloads are ignored, unless all of them do in
    which case RecordNotFoundError is raised (chained to the failures).
    """
    clients = list(clients)
    if not clients:
        raise ValueError('At least one relay client is required')
    results = await asyncio.gather(*(client.resolve(public_key, codec=codec) for client in clients), return_exceptions=True)
    records: list[Record[M]] = []
    errors: list[Exception] = []
    for client, result in zip(clients, results, strict=True):
        match result:
            case Record():
                records.append(result)
            case RecordNotFoundError():
                errors.append(result)
            case RelayError() | RecordError():
                log.warning('Ignoring %s: %s', client.relay_url, result)
                errors.append(result)
            case BaseException():
                raise result
    if not records:
        raise RecordNotFoundError(f'No relay returned a valid record for {encode_identity(public_key)}') from ExceptionGroup('relay errors', errors)
    return max(records, key=lambda record: record.timestamp)
