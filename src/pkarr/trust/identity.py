# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Public key identities.

   Relays address records by the public key they belong to, written in
   z-base-32. This is base32 with a different alphabet, which is meant
   to be easier for humans to read, and without any padding. Bits are
   taken most significant first, the same as in RFC 4648, so a 32-byte
   Ed25519 public key results in 52 characters.

"""

from base64 import b32decode, b32encode
from binascii import Error as BinasciiError

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

__all__ = 'zbase32_encode', 'zbase32_decode', 'encode_identity', 'decode_identity'


_rfc4648_alphabet = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ234567'
_zbase32_alphabet = 'ybndrfg8ejkmcpqxot1uwisza345h769'

_to_zbase32 = str.maketrans(_rfc4648_alphabet, _zbase32_alphabet)
_from_zbase32 = str.maketrans(_zbase32_alphabet, _rfc4648_alphabet)


def zbase32_encode(data: bytes) -> str:
    return b32encode(data).decode('ascii').rstrip('=').translate(_to_zbase32)


def zbase32_decode(text: str) -> bytes:
    text = text.lower()
    if not set(text).issubset(_zbase32_alphabet):
        raise ValueError(f'Invalid z-base-32 string: {text!r}')
    encoded = text.translate(_from_zbase32)
    try:
        data = b32decode(encoded + '=' * (-len(encoded) % 8))
    except BinasciiError as exc:
        raise ValueError(f'Invalid z-base-32 string: {text!r}') from exc
    if zbase32_encode(data) != text:
        raise ValueError(f'Non-canonical z-base-32 string: {text!r}')
    return data


def encode_identity(public_key: Ed25519PublicKey) -> str:
    return zbase32_encode(public_key.public_bytes(Encoding.Raw, PublicFormat.Raw))


def decode_identity(text: str) -> Ed25519PublicKey:
    """Return the public key for an identity, optionally written with a 'pk:' prefix"""
    text = text.strip().removeprefix('pk:')
    key_data = zbase32_decode(text)
    if len(key_data) != 32:
        raise ValueError(f'Identity does not encode a 32-byte public key: {text!r}')
    return Ed25519PublicKey.from_public_bytes(key_data)
