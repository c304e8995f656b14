# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Signed DNS records

   A record is a DNS message signed with an Ed25519 key, together with
   the time it was signed at. It is exchanged with relays using a fixed
   layout payload where all integers are represented in network byte
   order:

     +-------------------------+
     |  Signature (64 bytes)   |
     +-------------------------+
     |  Timestamp (8 bytes)    |
     +-------------------------+
     |  Packed DNS message     |
     +-------------------------+

   Signature:  The Ed25519 signature over the bytes produced by the
      signable_bytes() function from the timestamp and the packed DNS
      message.

   Timestamp:  The number of milliseconds since the Unix epoch, as an
      unsigned 64-bit integer.

   Packed DNS message:  The message in DNS wire format. It has no length
      prefix, it extends to the end of the payload and it can have at
      most 1000 bytes.

   The public key is not part of the payload. Whoever parses a payload
   must know which key it belongs to (relays store them under an address
   derived from the public key) and the payload is only accepted if the
   signature verifies with that key.

"""

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import ClassVar, Self

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from .codec import DNSMessageCodec, MessageCodec, make_response
from .datamodel import PacketBody, Signature, Timestamp, UInt64, WireData
from .exceptions import (
    BodyTooLargeError,
    InvalidPayloadError,
    InvalidPayloadReason,
    MessageDecodeError,
    MessageEncodeError,
    PayloadTooLargeError,
    RecordError,
)
from .signable import signable_bytes

__all__ = (  # noqa: RUF022
    'Record',

    'SIGNATURE_LENGTH',
    'HEADER_LENGTH',
    'MAX_PACKET_LENGTH',
    'MAX_BODY_LENGTH',
    'MAX_PAYLOAD_LENGTH',

    'MessageCodec',
    'DNSMessageCodec',
    'make_response',
    'signable_bytes',

    'RecordError',
    'BodyTooLargeError',
    'PayloadTooLargeError',
    'InvalidPayloadError',
    'InvalidPayloadReason',
    'MessageEncodeError',
    'MessageDecodeError',
)


SIGNATURE_LENGTH = Signature._size_
HEADER_LENGTH = SIGNATURE_LENGTH + UInt64._size_

MAX_PACKET_LENGTH = PacketBody._maxsize_
MAX_BODY_LENGTH = MAX_PACKET_LENGTH
MAX_PAYLOAD_LENGTH = HEADER_LENGTH + MAX_PACKET_LENGTH


dns_codec = DNSMessageCodec()


@dataclass(frozen=True)
class Record[M]:
    """A DNS message signed by the owner of a public key at a given time"""

    _header_length_: ClassVar[int] = HEADER_LENGTH
    _max_length_: ClassVar[int] = MAX_PAYLOAD_LENGTH

    public_key: Ed25519PublicKey
    signature: Signature
    timestamp: Timestamp
    body: PacketBody
    message: M = field(compare=False)  # decoded from body

    @property
    def time(self) -> datetime:
        return self.timestamp.to_datetime()

    @classmethod
    def new(cls, private_key: Ed25519PrivateKey, message: M, timestamp: datetime, *, codec: MessageCodec[M] = dns_codec) -> Self:
        """
        Pack and sign a message.

        The timestamp is truncated to millisecond resolution. Raises
        BodyTooLargeError if the packed message has more than 1000 bytes.
        """
        if not isinstance(private_key, Ed25519PrivateKey):
            raise TypeError(f'Unsupported key type: {private_key.__class__.__qualname__!r} (expected Ed25519PrivateKey)')
        body = PacketBody(codec.pack(message))
        timestamp = Timestamp.from_datetime(timestamp)
        signature = Signature(private_key.sign(signable_bytes(timestamp, body)))
        return cls(public_key=private_key.public_key(), signature=signature, timestamp=timestamp, body=body, message=message)

    @classmethod
    def from_wire(cls, buffer: WireData, *, public_key: Ed25519PublicKey, codec: MessageCodec[M] = dns_codec) -> Self:
        """Parse a payload and verify that it was signed with the private key that matches public_key"""
        if not isinstance(public_key, Ed25519PublicKey):
            raise TypeError(f'Unsupported key type: {public_key.__class__.__qualname__!r} (expected Ed25519PublicKey)')
        data = buffer.read() if isinstance(buffer, BytesIO) else bytes(buffer)
        if len(data) < cls._header_length_:
            raise InvalidPayloadError(InvalidPayloadReason.TOO_SMALL)
        if len(data) > cls._max_length_:
            raise PayloadTooLargeError(f'The payload is too large ({len(data)} > {cls._max_length_} bytes)')

        buffer = BytesIO(data)
        signature = Signature.from_wire(buffer)
        timestamp = Timestamp.from_wire(buffer)
        body = PacketBody.from_wire(buffer)

        try:
            message = codec.unpack(body)
        except MessageDecodeError as exc:
            raise InvalidPayloadError(InvalidPayloadReason.DECODE_FAILED) from exc

        try:
            public_key.verify(signature, signable_bytes(timestamp, body))
        except InvalidSignature as exc:
            raise InvalidPayloadError(InvalidPayloadReason.BAD_SIGNATURE) from exc

        try:
            timestamp.to_datetime()
        except OverflowError as exc:
            raise InvalidPayloadError(InvalidPayloadReason.BAD_TIMESTAMP) from exc

        return cls(public_key=public_key, signature=signature, timestamp=timestamp, body=body, message=message)

    def to_wire(self) -> bytes:
        return self.signature.to_wire() + self.timestamp.to_wire() + self.body.to_wire()

    def wire_length(self) -> int:
        return self.signature.wire_length() + self.timestamp.wire_length() + self.body.wire_length()
