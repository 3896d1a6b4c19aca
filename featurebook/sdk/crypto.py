from __future__ import annotations

"""Encrypted feature payload handling.

A token has the form ``<base64 iv>.<base64 ciphertext>``; the key is base64
as well. :class:`PayloadDecryptor` takes care of splitting and decoding and
hands the raw bytes to a :class:`DecryptPrimitive`.
"""

import base64
import binascii
import logging
from typing import Protocol, runtime_checkable

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .codec import FeaturePayloadCodec, JsonFeatureCodec
from .exceptions import DecryptionError, PayloadDecodeError
from .models import FeatureMapping

logger = logging.getLogger(__name__)

TOKEN_SEPARATOR = "."


@runtime_checkable
class DecryptPrimitive(Protocol):
    """Block-cipher decrypt over raw bytes."""

    def decrypt(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes: ...


class AesCbcDecryptor:
    """AES-CBC with PKCS7 padding, the scheme used for encrypted feature payloads."""

    def decrypt(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()

    def encrypt(self, key: bytes, iv: bytes, plaintext: bytes) -> bytes:
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return encryptor.update(padded) + encryptor.finalize()


def _b64decode(value: str, *, stage: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError(stage, f"invalid base64: {exc}") from exc


class PayloadDecryptor:
    """Turn an encrypted token into a feature mapping or raise :class:`DecryptionError`."""

    def __init__(
        self,
        primitive: DecryptPrimitive | None = None,
        codec: FeaturePayloadCodec | None = None,
    ) -> None:
        self.primitive = primitive or AesCbcDecryptor()
        self.codec = codec or JsonFeatureCodec()

    def decrypt(self, token: str, key: str) -> FeatureMapping:
        iv_segment, sep, cipher_segment = token.partition(TOKEN_SEPARATOR)
        if not sep or not iv_segment or not cipher_segment:
            raise DecryptionError("split", "token must be '<iv>.<ciphertext>'")

        iv = _b64decode(iv_segment, stage="iv")
        ciphertext = _b64decode(cipher_segment, stage="ciphertext")
        key_bytes = _b64decode(key, stage="key")

        try:
            plaintext = self.primitive.decrypt(key_bytes, iv, ciphertext)
        except Exception as exc:
            raise DecryptionError("decrypt", str(exc) or type(exc).__name__) from exc

        try:
            return self.codec.decode_mapping(plaintext)
        except PayloadDecodeError as exc:
            raise DecryptionError("decode", str(exc)) from exc


__all__ = [
    "AesCbcDecryptor",
    "DecryptPrimitive",
    "PayloadDecryptor",
    "TOKEN_SEPARATOR",
]
