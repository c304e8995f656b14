# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from enum import Enum

__all__ = (  # noqa: RUF022
    'RecordError',
    'BodyTooLargeError',
    'PayloadTooLargeError',
    'InvalidPayloadError',
    'InvalidPayloadReason',
    'MessageEncodeError',
    'MessageDecodeError',
)


class RecordError(ValueError):
    """Base class for errors raised while creating or parsing records"""


class BodyTooLargeError(RecordError):
    """Raised when the packed message does not fit in a record"""


class PayloadTooLargeError(RecordError):
    """Raised when a payload is longer than the longest possible record"""


class MessageEncodeError(RecordError):
    """Raised by a message codec when it cannot pack a message"""


class MessageDecodeError(RecordError):
    """Raised by a message codec when it cannot unpack a byte sequence"""


class InvalidPayloadReason(Enum):
    TOO_SMALL = 'payload is too small'
    DECODE_FAILED = 'failed to unpack DNS message'
    BAD_SIGNATURE = 'invalid signature'
    BAD_TIMESTAMP = 'timestamp is out of range'

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}.{self.name}'


class InvalidPayloadError(RecordError):
    """
    Raised when a payload cannot be trusted.

    The reason attribute tells why the payload was rejected, but all
    the reasons mean the same thing to the caller: the payload is not
    a valid record for the public key it was checked against.

    """

    def __init__(self, reason: InvalidPayloadReason) -> None:
        super().__init__(f'invalid payload: {reason.value}')
        self.reason = reason
