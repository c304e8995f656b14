# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from .identity import decode_identity, encode_identity, zbase32_decode, zbase32_encode
from .private import generate_private_key, load_private_key, save_private_key

__all__ = 'decode_identity', 'encode_identity', 'generate_private_key', 'load_private_key', 'save_private_key', 'zbase32_decode', 'zbase32_encode'
