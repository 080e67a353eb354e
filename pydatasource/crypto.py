"""
Encrypted-value helper.

Wraps an external encrypt/decrypt capability (a KMS-like service) and
exchanges ciphertext as padded, standard-alphabet base64 text. Only the
capability contract matters here; the cryptographic algorithm belongs to the
backing service. No retries: transient failures surface to the caller.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Protocol, Union

from .exceptions import DecodeError, DecryptionFailed, EncryptionFailed

LOGGER = logging.getLogger(__name__)


def b64encode(data: Union[bytes, bytearray, str]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(bytes(data)).decode("ascii")


def b64decode(text: Union[str, bytes]) -> bytes:
    """Strict decode: rejects bad alphabet, bad padding and non-canonical input."""
    if isinstance(text, str):
        try:
            raw_text = text.encode("ascii")
        except UnicodeEncodeError as e:
            raise DecodeError(f"invalid base64: {e}") from e
    else:
        raw_text = bytes(text)
    if len(raw_text) % 4:
        raise DecodeError(f"invalid base64: length {len(raw_text)} is not padded")
    try:
        out = base64.b64decode(raw_text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64: {e}") from e
    if base64.b64encode(out) != raw_text:
        raise DecodeError("invalid base64: non-canonical encoding")
    return out


class CryptoBackend(Protocol):
    """Minimal encrypt/decrypt capability."""

    def encrypt(self, key_id: str, plaintext: bytes) -> bytes: ...

    def decrypt(self, ciphertext: bytes) -> bytes: ...


class BotoKMSBackend:
    """Adapts a boto3-style KMS client (``client.encrypt(KeyId=..., Plaintext=...)``)."""

    def __init__(self, client):
        self._client = client

    def encrypt(self, key_id: str, plaintext: bytes) -> bytes:
        resp = self._client.encrypt(KeyId=key_id, Plaintext=plaintext)
        return resp["CiphertextBlob"]

    def decrypt(self, ciphertext: bytes) -> bytes:
        resp = self._client.decrypt(CiphertextBlob=ciphertext)
        return resp["Plaintext"]


class KMS:
    def __init__(self, backend: CryptoBackend):
        self._backend = backend

    def encrypt(self, key_id: str, plaintext: Union[str, bytes]) -> str:
        data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext
        LOGGER.debug("kms.encrypt key=%s bytes=%d", key_id, len(data))
        try:
            ciphertext = self._backend.encrypt(key_id, data)
        except Exception as e:
            LOGGER.error("Encrypt with key %s failed: %s", key_id, e)
            raise EncryptionFailed(
                f"encrypt with key {key_id!r} failed: {e}", key_id=key_id
            ) from e
        return b64encode(ciphertext)

    def decrypt_bytes(self, blob: Union[str, bytes]) -> bytes:
        ciphertext = b64decode(blob)
        LOGGER.debug("kms.decrypt bytes=%d", len(ciphertext))
        try:
            plaintext = self._backend.decrypt(ciphertext)
        except Exception as e:
            LOGGER.error("Decrypt failed: %s", e)
            raise DecryptionFailed(f"decrypt failed: {e}") from e
        return bytes(plaintext)

    def decrypt(self, blob: Union[str, bytes]) -> str:
        plaintext = self.decrypt_bytes(blob)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"decrypted value is not UTF-8 text: {e}") from e
