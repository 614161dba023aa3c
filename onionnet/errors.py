# onionnet/errors.py


class OnionError(Exception):
    """Base class for every failure reported back to the caller of a hop."""
    status_code = 400


# -----------------------------
# Registry
# -----------------------------
class RegistryError(OnionError):
    pass


class DuplicateIdError(RegistryError):
    pass


class DuplicateKeyError(RegistryError):
    pass


class MalformedKeyError(RegistryError):
    pass


class RegistryUnavailableError(RegistryError):
    status_code = 503


# -----------------------------
# Circuit construction
# -----------------------------
class InsufficientNodesError(OnionError):
    status_code = 500


class PayloadTooLargeError(OnionError):
    pass


# -----------------------------
# Peeling
# -----------------------------
class InvalidEnvelopeError(OnionError):
    pass


class DecryptionError(OnionError):
    pass


# -----------------------------
# Next hop
# -----------------------------
class ForwardError(OnionError):
    status_code = 502


class DeliveryError(OnionError):
    status_code = 502
