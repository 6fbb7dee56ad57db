"""
Approval tokens.

A token is ``hex(nonce) + hex(secretbox ciphertext)`` under the shared
``APPROVAL_SECRET_KEY``, readable by the web frontend's libsodium code.
"""

import logging
from typing import Optional

import nacl.exceptions
import nacl.secret
import nacl.utils

from attractions.exceptions import AttractionsError

logger = logging.getLogger(__name__)

NONCE_HEX_LENGTH = nacl.secret.SecretBox.NONCE_SIZE * 2


class ApprovalTokenCodec:
    """Encrypts and decrypts approval identifiers"""

    def __init__(self, secret_key_hex: Optional[str]):
        self.secret_key_hex = secret_key_hex

    def _box(self) -> nacl.secret.SecretBox:
        if not self.secret_key_hex:
            raise AttractionsError("Secret key not found in environment variables")
        return nacl.secret.SecretBox(bytes.fromhex(self.secret_key_hex))

    def hash(self, value: str) -> Optional[str]:
        """Encrypt a value into a token"""
        if not value:
            return None

        try:
            box = self._box()
            nonce = nacl.utils.random(nacl.secret.SecretBox.NONCE_SIZE)
            encrypted = box.encrypt(value.encode("utf-8"), nonce)
        except (ValueError, nacl.exceptions.CryptoError, AttractionsError) as e:
            logger.error("Encryption error: %s", e)
            raise AttractionsError("Encryption failed") from e

        return nonce.hex() + encrypted.ciphertext.hex()

    def unhash(self, encrypted: Optional[str]) -> Optional[str]:
        """Decrypt a token.

        Returns the input unchanged when it cannot be decrypted, so callers
        must treat ``unhash(x) == x`` as an invalid token.
        """
        if not encrypted:
            return None

        try:
            box = self._box()
            nonce = bytes.fromhex(encrypted[:NONCE_HEX_LENGTH])
            ciphertext = bytes.fromhex(encrypted[NONCE_HEX_LENGTH:])
            return box.decrypt(ciphertext, nonce).decode("utf-8")
        except (ValueError, TypeError, nacl.exceptions.CryptoError, AttractionsError) as e:
            logger.warning("Decryption error: %s", e)
            return encrypted

    def resolve(self, encrypted: Optional[str]) -> Optional[str]:
        """Decrypted value, or None when the token is not a valid one"""
        value = self.unhash(encrypted)
        if not value or value == encrypted:
            return None
        return value
