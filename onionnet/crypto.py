# onionnet/crypto.py
import base64
import binascii
from dataclasses import dataclass

from Crypto.Cipher import AES, PKCS1_OAEP
from Crypto.Hash import SHA256
from Crypto.PublicKey import RSA
from Crypto.Random import get_random_bytes

from onionnet.config import (
    AES_KEY_BYTES,
    GCM_IV_BYTES,
    GCM_TAG_BYTES,
    RSA_KEY_BITS,
    RSA_PUBLIC_EXPONENT,
)
from onionnet.errors import DecryptionError, MalformedKeyError, PayloadTooLargeError

# -----------------------------
# Base64 helpers
# -----------------------------
def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text, error=ValueError, what="data") -> bytes:
    """
    Strict base64 decoding. Any malformed input is raised as `error`.
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise error(f"Invalid base64 {what}") from e


# -----------------------------
# RSA-OAEP (SHA-256)
# -----------------------------
@dataclass(frozen=True)
class KeyPair:
    public_key: RSA.RsaKey
    private_key: RSA.RsaKey


def generate_key_pair() -> KeyPair:
    private_key = RSA.generate(RSA_KEY_BITS, e=RSA_PUBLIC_EXPONENT)
    return KeyPair(public_key=private_key.publickey(), private_key=private_key)


def export_public_key(key: RSA.RsaKey) -> str:
    # SubjectPublicKeyInfo, DER
    return b64encode(key.publickey().export_key(format="DER"))


def export_private_key(key: RSA.RsaKey) -> str:
    if not key.has_private():
        raise MalformedKeyError("Not a private key")
    return b64encode(key.export_key(format="DER", pkcs=8))


def _import_rsa(text, what):
    der = b64decode(text, MalformedKeyError, what)
    try:
        return RSA.import_key(der)
    except (ValueError, IndexError, TypeError) as e:
        raise MalformedKeyError(f"Invalid {what}") from e


def import_public_key(text: str) -> RSA.RsaKey:
    key = _import_rsa(text, "public key")
    if key.has_private():
        raise MalformedKeyError("Expected a public key, got a private key")
    return key


def import_private_key(text: str) -> RSA.RsaKey:
    key = _import_rsa(text, "private key")
    if not key.has_private():
        raise MalformedKeyError("Expected a private key, got a public key")
    return key


def max_asymmetric_payload(key: RSA.RsaKey) -> int:
    """Largest plaintext OAEP can carry for this modulus (190 bytes for 2048 bits)."""
    return key.size_in_bytes() - 2 * SHA256.digest_size - 2


def encrypt_asymmetric(plaintext: bytes, public_key: RSA.RsaKey) -> bytes:
    limit = max_asymmetric_payload(public_key)
    if len(plaintext) > limit:
        raise PayloadTooLargeError(
            f"{len(plaintext)} bytes exceeds the OAEP limit of {limit} bytes"
        )
    cipher = PKCS1_OAEP.new(public_key, hashAlgo=SHA256)
    return cipher.encrypt(plaintext)


def decrypt_asymmetric(ciphertext: bytes, private_key: RSA.RsaKey) -> bytes:
    try:
        cipher = PKCS1_OAEP.new(private_key, hashAlgo=SHA256)
        return cipher.decrypt(ciphertext)
    except (ValueError, TypeError) as e:
        raise DecryptionError("Asymmetric decryption failed") from e


# -----------------------------
# AES-256-GCM
# -----------------------------
def generate_symmetric_key() -> bytes:
    return get_random_bytes(AES_KEY_BYTES)


def export_symmetric_key(key: bytes) -> str:
    return b64encode(key)


def import_symmetric_key(text) -> bytes:
    key = b64decode(text, MalformedKeyError, "symmetric key")
    if len(key) != AES_KEY_BYTES:
        raise MalformedKeyError(
            f"Symmetric key must be {AES_KEY_BYTES} bytes, got {len(key)}"
        )
    return key


def encrypt_symmetric(plaintext: bytes, key: bytes) -> bytes:
    """
    Returns iv || ciphertext || tag with a fresh random 12-byte IV per call.
    """
    iv = get_random_bytes(GCM_IV_BYTES)
    cipher = AES.new(key, AES.MODE_GCM, nonce=iv, mac_len=GCM_TAG_BYTES)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    return iv + ciphertext + tag


def decrypt_symmetric(data: bytes, key: bytes) -> bytes:
    if len(data) < GCM_IV_BYTES + GCM_TAG_BYTES:
        raise DecryptionError("Ciphertext too short for IV and tag")
    iv = data[:GCM_IV_BYTES]
    ciphertext = data[GCM_IV_BYTES:-GCM_TAG_BYTES]
    tag = data[-GCM_TAG_BYTES:]
    try:
        cipher = AES.new(key, AES.MODE_GCM, nonce=iv, mac_len=GCM_TAG_BYTES)
        return cipher.decrypt_and_verify(ciphertext, tag)
    except (ValueError, TypeError) as e:
        raise DecryptionError("Symmetric decryption failed") from e
