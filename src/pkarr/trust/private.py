# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from os import PathLike
from pathlib import Path
from tempfile import NamedTemporaryFile

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import BestAvailableEncryption, Encoding, NoEncryption, PrivateFormat, load_pem_private_key

__all__ = 'generate_private_key', 'load_private_key', 'save_private_key'


def generate_private_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


def load_private_key(path: str | PathLike[str], *, password: str | None = None) -> Ed25519PrivateKey:
    """
    Load a PEM encoded PKCS8 Ed25519 private key.

    Raises ValueError if the file does not hold an Ed25519 key, or if the
    password is wrong, missing for an encrypted key or given for a plain
    one.
    """
    path = Path(path).expanduser()
    try:
        key = load_pem_private_key(path.read_bytes(), password=None if password is None else password.encode())
    except TypeError as exc:
        # cryptography signals a password mismatch with the key encryption as TypeError
        raise ValueError(f'Cannot load private key from {path}: {exc}') from exc
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError(f'Unsupported key type in {path}: {key.__class__.__qualname__!r} (expected Ed25519PrivateKey)')
    return key


def save_private_key(key: Ed25519PrivateKey, path: str | PathLike[str], *, password: str | None = None) -> None:
    """Save the key in PEM PKCS8 format, replacing the file atomically"""
    encryption = NoEncryption() if password is None else BestAvailableEncryption(password.encode())
    path = Path(path).expanduser()
    with NamedTemporaryFile(dir=path.parent, prefix=f'.{path.name}.', delete=False) as key_file:
        key_file.write(key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, encryption))
    Path(key_file.name).replace(path)
