# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later


__all__ = 'RelayError', 'RelayConnectionError', 'RelayResponseError', 'RecordNotFoundError'


class RelayError(Exception):
    """Base class for errors talking to a relay"""


class RelayConnectionError(RelayError):
    """
    Raised when a request to a relay could not be completed.

    This covers connection failures and timeouts. The underlying httpx
    exception is available as this exception's ``__cause__`` attribute.

    """


class RelayResponseError(RelayError):
    """Raised when a relay answers a request with an unexpected status"""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordNotFoundError(RelayError):
    """Raised when a relay does not have a record for the requested public key"""
