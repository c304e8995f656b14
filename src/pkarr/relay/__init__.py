# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from .client import RelayClient, resolve_latest
from .exceptions import RecordNotFoundError, RelayConnectionError, RelayError, RelayResponseError

__all__ = 'RelayClient', 'resolve_latest', 'RecordNotFoundError', 'RelayConnectionError', 'RelayError', 'RelayResponseError'  # noqa: RUF022
