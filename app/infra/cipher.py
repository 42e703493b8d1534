"""AES-256-CBC encryption of query text sent to tenant agents.

Token format is ``ivHex:cipherHex`` so the agent can decrypt without an
out-of-band IV. The key is the SHA-256 digest of the key material.
"""

import hashlib
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from app.infra.error_handler import EncryptionError

IV_SIZE = 16
TOKEN_SEPARATOR = ":"


def derive_key(secret: str) -> bytes:
    """Derive the 32-byte AES key from the tenant's key material."""
    return hashlib.sha256(secret.encode("utf-8")).digest()


def encrypt(plaintext: str, secret: str) -> str:
    """
    Encrypt ``plaintext`` with a fresh random IV.

    Raises:
        EncryptionError: If the key material is missing or encryption fails
    """
    if not secret:
        raise EncryptionError("Encryption key material is empty")

    try:
        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(derive_key(secret)), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
    except (TypeError, ValueError, UnicodeError) as e:
        raise EncryptionError(f"Failed to encrypt payload: {e}") from e

    return iv.hex() + TOKEN_SEPARATOR + ciphertext.hex()


def decrypt(token: str, secret: str) -> str:
    """
    Decrypt an ``ivHex:cipherHex`` token.

    Raises:
        EncryptionError: On a malformed token, wrong key or bad padding
    """
    if not secret:
        raise EncryptionError("Encryption key material is empty")

    iv_hex, separator, cipher_hex = token.partition(TOKEN_SEPARATOR)
    if not separator or not cipher_hex:
        raise EncryptionError("Encrypted payload is not in ivHex:cipherHex format")

    try:
        iv = bytes.fromhex(iv_hex)
        ciphertext = bytes.fromhex(cipher_hex)
        if len(iv) != IV_SIZE:
            raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
        decryptor = Cipher(algorithms.AES(derive_key(secret)), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except (TypeError, ValueError, UnicodeError) as e:
        raise EncryptionError(f"Failed to decrypt payload: {e}") from e
