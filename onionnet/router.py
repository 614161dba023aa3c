# onionnet/router.py
import logging

from onionnet.crypto import (
    b64decode,
    b64encode,
    decrypt_asymmetric,
    decrypt_symmetric,
    export_private_key,
    export_public_key,
    generate_key_pair,
    import_symmetric_key,
)
from onionnet.envelope import Address, PlaintextLayer, split_envelope
from onionnet.errors import DecryptionError, InvalidEnvelopeError, MalformedKeyError
from onionnet.state import RouterState

logger = logging.getLogger(__name__)


def render_payload(layer: PlaintextLayer) -> str:
    """
    Text form of a peeled payload: the message itself for the exit hop,
    base64 of the nested envelope otherwise.
    """
    if layer.next_hop.is_user:
        return layer.payload.decode("utf-8", errors="replace")
    return b64encode(layer.payload)


class OnionRouter:
    """
    A relay. Holds one persistent RSA key pair, generated at startup and
    registered once, and peels exactly one layer of every envelope it is
    handed. No per-circuit state is kept between messages.
    """

    def __init__(self, node_id, network, key_pair=None):
        self.node_id = node_id
        self.network = network
        self.key_pair = key_pair if key_pair is not None else generate_key_pair()
        self.state = RouterState()

    @property
    def pub_key(self) -> str:
        return export_public_key(self.key_pair.public_key)

    @property
    def prv_key(self) -> str:
        return export_private_key(self.key_pair.private_key)

    def register(self, directory):
        node = directory.register(self.node_id, self.pub_key)
        logger.info(f"[Router {self.node_id}] Registered with the node registry")
        return node

    def peel(self, envelope: bytes) -> PlaintextLayer:
        """
        Remove one layer. Raises InvalidEnvelopeError or DecryptionError;
        nothing is returned unless the AEAD tag verified.
        """
        private_key = self.key_pair.private_key
        encrypted_sym_key, aead = split_envelope(envelope, private_key.size_in_bytes())

        exported = decrypt_asymmetric(encrypted_sym_key, private_key)
        try:
            sym_key = import_symmetric_key(exported.decode("ascii"))
        except (UnicodeDecodeError, MalformedKeyError) as e:
            raise DecryptionError("Unwrapped symmetric key is malformed") from e

        return PlaintextLayer.decode(decrypt_symmetric(aead, sym_key))

    def process(self, envelope: bytes) -> str:
        """
        Peel one layer, then forward the inner envelope to the next relay or
        deliver the message to its user. Returns the decrypted payload text.
        """
        self.state.record_encrypted(b64encode(envelope))
        try:
            layer = self.peel(envelope)
        except (InvalidEnvelopeError, DecryptionError) as e:
            logger.warning(f"[Router {self.node_id}] Dropping message: {e}")
            raise

        decrypted = render_payload(layer)
        self.state.record_decrypted(decrypted, layer.next_hop)
        logger.debug(f"[Router {self.node_id}] Decrypted layer: {layer.payload[:32].hex()}...")

        if layer.next_hop.is_user:
            logger.info(f"[Router {self.node_id} - EXIT] Delivering message to user {layer.next_hop.id}")
            self.network.deliver_to_user(layer.next_hop.id, layer.payload, sender=Address.relay(self.node_id))
        else:
            logger.info(f"[Router {self.node_id}] Forwarding layer to relay {layer.next_hop.id}")
            self.network.send_to_relay(layer.next_hop.id, layer.payload, sender=Address.relay(self.node_id))
        return decrypted

    def receive(self, message: str) -> str:
        """Entry point for base64 text, as carried over HTTP."""
        try:
            envelope = b64decode(message, InvalidEnvelopeError, "envelope")
        except InvalidEnvelopeError:
            self.state.record_encrypted(message)
            raise
        return self.process(envelope)
