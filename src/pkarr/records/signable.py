# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
The bytes that a record signature covers.

   The signature is computed over the bencoded representation of a
   dictionary with the "seq" and "v" keys, holding the timestamp and
   the packed DNS message respectively, with the outer dictionary
   markers stripped:

     3:seqi<timestamp>e1:v<length>:<packed message>

   The timestamp is expressed in milliseconds since the Unix epoch and
   both numbers are written in decimal with no leading zeros.

"""

from collections.abc import Buffer

__all__ = 'signable_bytes',  # noqa: COM818


def signable_bytes(timestamp: int, body: Buffer) -> bytes:
    body = bytes(body)
    return b'3:seqi%de1:v%d:%b' % (int(timestamp), len(body), body)
