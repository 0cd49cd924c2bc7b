import os
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from app.core.config import CNIC_ENCRYPTION_KEY


def _key() -> bytes:
    return CNIC_ENCRYPTION_KEY.encode("utf-8")


def encrypt_cnic(plain: Optional[str]) -> Optional[str]:
    """
    Encrypt a CNIC with AES-256-CBC.
    Returns "<iv hex>:<ciphertext hex>", or None for an empty value.
    """
    if not plain:
        return None
    iv = os.urandom(16)
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plain.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(_key()), modes.CBC(iv)).encryptor()
    encrypted = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{encrypted.hex()}"


def decrypt_cnic(stored: Optional[str]) -> Optional[str]:
    if not stored:
        return None
    iv_hex, _, cipher_hex = stored.partition(":")
    decryptor = Cipher(algorithms.AES(_key()), modes.CBC(bytes.fromhex(iv_hex))).decryptor()
    padded = decryptor.update(bytes.fromhex(cipher_hex)) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
