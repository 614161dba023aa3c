# onionnet/envelope.py
"""
Wire format of one onion layer.

An envelope is ``encrypted_sym_key || iv || aead_ciphertext``. The
``encrypted_sym_key`` segment is as long as the recipient's RSA modulus
(256 bytes for 2048-bit keys). Once decrypted, the AEAD part yields a
plaintext layer: a fixed-width next-hop address followed by the inner
payload, which is either another envelope or the final message.

Addresses are 11 ASCII bytes: a tag (``R`` for a relay, ``U`` for a user)
and a zero-padded 10-digit id, e.g. ``R0000000002`` or ``U0000000042``.
"""
from dataclasses import dataclass
from enum import Enum

from onionnet.config import GCM_IV_BYTES, RSA_KEY_BITS
from onionnet.errors import InvalidEnvelopeError

ENCRYPTED_KEY_BYTES = RSA_KEY_BITS // 8

ADDRESS_ID_DIGITS = 10
ADDRESS_LENGTH = 1 + ADDRESS_ID_DIGITS
MAX_ADDRESS_ID = 10 ** ADDRESS_ID_DIGITS - 1


class AddressKind(Enum):
    RELAY = "R"
    USER = "U"


@dataclass(frozen=True)
class Address:
    kind: AddressKind
    id: int

    def __post_init__(self):
        if not (0 <= self.id <= MAX_ADDRESS_ID):
            raise ValueError(f"Address id must be in [0, {MAX_ADDRESS_ID}], got {self.id}")

    @classmethod
    def relay(cls, node_id: int) -> "Address":
        return cls(AddressKind.RELAY, node_id)

    @classmethod
    def user(cls, user_id: int) -> "Address":
        return cls(AddressKind.USER, user_id)

    @property
    def is_user(self) -> bool:
        return self.kind is AddressKind.USER

    def encode(self) -> bytes:
        return f"{self.kind.value}{self.id:0{ADDRESS_ID_DIGITS}d}".encode("ascii")

    @classmethod
    def decode(cls, data: bytes) -> "Address":
        if len(data) != ADDRESS_LENGTH:
            raise InvalidEnvelopeError(f"Address must be {ADDRESS_LENGTH} bytes")
        try:
            token = data.decode("ascii")
            kind = AddressKind(token[0])
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidEnvelopeError("Unknown address tag") from e
        digits = token[1:]
        if not digits.isdigit():
            raise InvalidEnvelopeError(f"Malformed address id: {digits!r}")
        return cls(kind, int(digits))

    def to_dict(self) -> dict:
        return {"kind": self.kind.name.lower(), "id": self.id}

    def __str__(self):
        return f"{self.kind.name.lower()} {self.id}"


@dataclass(frozen=True)
class PlaintextLayer:
    next_hop: Address
    payload: bytes

    def encode(self) -> bytes:
        return self.next_hop.encode() + self.payload

    @classmethod
    def decode(cls, data: bytes) -> "PlaintextLayer":
        if len(data) < ADDRESS_LENGTH:
            raise InvalidEnvelopeError("Layer too short to hold a next-hop address")
        return cls(Address.decode(data[:ADDRESS_LENGTH]), data[ADDRESS_LENGTH:])


def join_envelope(encrypted_sym_key: bytes, aead: bytes) -> bytes:
    return encrypted_sym_key + aead


def split_envelope(envelope: bytes, key_length: int = ENCRYPTED_KEY_BYTES):
    """
    Split an envelope into (encrypted_sym_key, iv || ciphertext).
    """
    if len(envelope) < key_length + GCM_IV_BYTES:
        raise InvalidEnvelopeError(
            f"Envelope of {len(envelope)} bytes is shorter than the "
            f"{key_length + GCM_IV_BYTES}-byte minimum"
        )
    return envelope[:key_length], envelope[key_length:]
