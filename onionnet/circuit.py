# onionnet/circuit.py
import logging
import random

from onionnet.config import CIRCUIT_LENGTH
from onionnet.crypto import (
    encrypt_asymmetric,
    encrypt_symmetric,
    export_symmetric_key,
    generate_symmetric_key,
)
from onionnet.envelope import Address, PlaintextLayer, join_envelope
from onionnet.errors import InsufficientNodesError

logger = logging.getLogger(__name__)


def wrap_layer(node, next_hop: Address, payload: bytes) -> bytes:
    """
    Encrypt one layer for `node`: a fresh AES key seals the layer, and the
    node's registered RSA key seals the AES key.
    """
    sym_key = generate_symmetric_key()
    layer = PlaintextLayer(next_hop, payload).encode()
    aead = encrypt_symmetric(layer, sym_key)
    encrypted_sym_key = encrypt_asymmetric(
        export_symmetric_key(sym_key).encode("ascii"), node.public_key()
    )
    return join_envelope(encrypted_sym_key, aead)


def build_onion(path, message: bytes, destination: Address) -> bytes:
    """
    Build the envelope from the exit node backwards to the entry node.
    The exit layer addresses `destination`; every other layer addresses the
    next relay in `path`.
    """
    if not path:
        raise ValueError("Circuit path is empty")

    data = message
    next_hop = destination
    for i, node in enumerate(reversed(path)):
        data = wrap_layer(node, next_hop, data)
        next_hop = Address.relay(node.node_id)
        logger.debug(f"[Circuit] Layer {i + 1} for node {node.node_id}: {len(data)} bytes")
    return data


class CircuitBuilder:
    """
    Sender-side circuit selection and onion construction.

    `directory` is anything with a `list_nodes()` method (a local
    `NodeRegistry` or an HTTP registry client). `rng` is the source of
    randomness for path selection; pass a seeded `random.Random` for
    reproducible paths.
    """

    def __init__(self, directory, length=CIRCUIT_LENGTH, rng=None):
        if length < 1:
            raise ValueError("Circuit length must be at least 1")
        self.directory = directory
        self.length = length
        self.rng = rng if rng is not None else random.SystemRandom()

    def select_path(self):
        """
        Choose `length` distinct nodes uniformly at random, entry first.
        """
        nodes = sorted(self.directory.list_nodes(), key=lambda n: n.node_id)
        if len(nodes) < self.length:
            raise InsufficientNodesError(
                f"Need {self.length} nodes to build a circuit, registry has {len(nodes)}"
            )
        return self.rng.sample(nodes, self.length)

    def build(self, message: bytes, destination: Address):
        """
        Returns (path, envelope) for a freshly selected circuit.
        """
        path = self.select_path()
        logger.info(f"[Circuit] Built circuit through nodes {[n.node_id for n in path]}")
        return path, build_onion(path, message, destination)
