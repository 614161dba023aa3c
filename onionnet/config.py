# onionnet/config.py
import os
from dataclasses import dataclass

# -----------------------------
# Protocol constants
# -----------------------------
CIRCUIT_LENGTH = 3

RSA_KEY_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537

AES_KEY_BYTES = 32  # AES-256
GCM_IV_BYTES = 12
GCM_TAG_BYTES = 16

# -----------------------------
# Deployment defaults
# -----------------------------
DEFAULT_HOST = "localhost"
REGISTRY_PORT = 8080
BASE_ONION_ROUTER_PORT = 4000
BASE_USER_PORT = 3000
REQUEST_TIMEOUT = 10.0  # seconds
INBOX_SIZE = 1000  # messages kept per user


@dataclass
class NetworkConfig:
    """
    Where the registry, routers and users listen. Only the address resolver
    reads this; the protocol layer never sees ports.
    """
    host: str = DEFAULT_HOST
    registry_port: int = REGISTRY_PORT
    base_router_port: int = BASE_ONION_ROUTER_PORT
    base_user_port: int = BASE_USER_PORT
    timeout: float = REQUEST_TIMEOUT

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("ONIONNET_HOST", DEFAULT_HOST),
            registry_port=int(env.get("ONIONNET_REGISTRY_PORT", REGISTRY_PORT)),
            base_router_port=int(env.get("ONIONNET_ROUTER_PORT", BASE_ONION_ROUTER_PORT)),
            base_user_port=int(env.get("ONIONNET_USER_PORT", BASE_USER_PORT)),
            timeout=float(env.get("ONIONNET_TIMEOUT", REQUEST_TIMEOUT)),
        )
