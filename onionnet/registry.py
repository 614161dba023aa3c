# onionnet/registry.py
import logging
import threading
from dataclasses import dataclass

from onionnet.crypto import export_public_key, import_public_key
from onionnet.envelope import MAX_ADDRESS_ID
from onionnet.errors import (
    DuplicateIdError,
    DuplicateKeyError,
    MalformedKeyError,
    RegistryError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    """
    Public directory entry of a relay: its id and base64 SPKI public key.
    """
    node_id: int
    pub_key: str

    def public_key(self):
        return import_public_key(self.pub_key)

    def to_dict(self) -> dict:
        return {"nodeId": self.node_id, "pubKey": self.pub_key}

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        return cls(node_id=int(data["nodeId"]), pub_key=data["pubKey"])


class NodeRegistry:
    """
    Directory mapping relay ids to their long-lived public keys.
    Grows only through `register`; ids and keys are both unique.
    """

    def __init__(self):
        self._nodes = {}
        self._ids_by_key = {}
        self._lock = threading.Lock()

    def register(self, node_id, pub_key) -> Node:
        if isinstance(node_id, bool) or not isinstance(node_id, int) or not 0 <= node_id <= MAX_ADDRESS_ID:
            raise RegistryError(f"Invalid node id: {node_id!r}")
        if not isinstance(pub_key, str) or not pub_key:
            raise MalformedKeyError("A base64 public key is required")

        # Normalise so the same key in two encodings counts as a duplicate.
        canonical = export_public_key(import_public_key(pub_key))

        with self._lock:
            if node_id in self._nodes:
                logger.warning(f"[Registry] Rejected node {node_id}: id already registered")
                raise DuplicateIdError(f"Node {node_id} is already registered")
            if canonical in self._ids_by_key:
                owner = self._ids_by_key[canonical]
                logger.warning(f"[Registry] Rejected node {node_id}: key already used by node {owner}")
                raise DuplicateKeyError("Duplicate public key, node not registered")
            node = Node(node_id=node_id, pub_key=canonical)
            self._nodes[node_id] = node
            self._ids_by_key[canonical] = node_id

        logger.info(f"[Registry] Registered node {node_id}")
        return node

    def list_nodes(self):
        """Snapshot of all registered nodes; order is not significant."""
        with self._lock:
            return list(self._nodes.values())

    def get(self, node_id):
        with self._lock:
            return self._nodes.get(node_id)

    def status(self) -> str:
        return "live"

    def __len__(self):
        with self._lock:
            return len(self._nodes)
