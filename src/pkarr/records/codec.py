# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from typing import Protocol

import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rrset

from .exceptions import MessageDecodeError, MessageEncodeError

__all__ = 'MessageCodec', 'DNSMessageCodec', 'make_response'


class MessageCodec[M](Protocol):
    """
    Converts messages to and from their canonical byte representation.

    Packing must be deterministic, since the packed bytes are what gets
    signed. Unpacking must reject malformed data with an error instead
    of returning a partially populated message.
    """

    def pack(self, message: M, /) -> bytes: ...

    def unpack(self, data: bytes, /) -> M: ...


class DNSMessageCodec:
    def pack(self, message: dns.message.Message, /) -> bytes:
        try:
            return message.to_wire()
        except (dns.exception.DNSException, ValueError) as exc:
            raise MessageEncodeError(f'Failed to pack DNS message: {exc}') from exc

    def unpack(self, data: bytes, /) -> dns.message.Message:
        try:
            return dns.message.from_wire(data)
        except (dns.exception.DNSException, ValueError) as exc:
            raise MessageDecodeError(f'Failed to unpack DNS message: {exc}') from exc

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}()'


def make_response(*rrsets: dns.rrset.RRset, id: int = 0) -> dns.message.Message:  # noqa: A002
    """Make a DNS response message that carries the given resource record sets as answers"""
    message = dns.message.Message(id=id)
    message.flags |= dns.flags.QR
    for rrset in rrsets:
        if not rrset.name.is_absolute():
            raise ValueError(f'Resource record names must be absolute: {rrset.name}')
        message.answer.append(rrset)
    return message
