# onionnet/network.py
"""
Transport collaborators. Routers and users only ever call
`send_to_relay` and `deliver_to_user`; where those go is decided here.
"""
import logging

import requests

from onionnet import errors
from onionnet.config import NetworkConfig
from onionnet.crypto import b64encode
from onionnet.envelope import Address
from onionnet.registry import Node

logger = logging.getLogger(__name__)


class AddressResolver:
    """
    Maps node and user ids to HTTP endpoints. This is the only place that
    knows about ports.
    """

    def __init__(self, config=None):
        self.config = config if config is not None else NetworkConfig()

    def _url(self, port):
        return f"http://{self.config.host}:{port}"

    def registry_url(self):
        return self._url(self.config.registry_port)

    def router_url(self, node_id):
        return self._url(self.config.base_router_port + node_id)

    def user_url(self, user_id):
        return self._url(self.config.base_user_port + user_id)

    def resolve(self, address: Address):
        if address.is_user:
            return self.user_url(address.id)
        return self.router_url(address.id)


# -----------------------------
# In-process network
# -----------------------------
class LocalNetwork:
    """
    Routers and users living in one process, called directly. Used by the
    demo, the interactive shell and the tests.
    """

    def __init__(self, trace=None):
        self.routers = {}
        self.users = {}
        self.trace = trace

    def add_router(self, router):
        self.routers[router.node_id] = router
        if self.trace is not None:
            self.trace.add_router(router.node_id)
        return router

    def add_user(self, user):
        self.users[user.user_id] = user
        if self.trace is not None:
            self.trace.add_user(user.user_id)
        return user

    def _record_hop(self, sender, target, label):
        if self.trace is not None and sender is not None:
            self.trace.add_hop(sender, target, label)

    def send_to_relay(self, node_id, envelope: bytes, sender=None):
        router = self.routers.get(node_id)
        if router is None:
            raise errors.ForwardError(f"Relay {node_id} is unreachable")
        self._record_hop(sender, Address.relay(node_id), "FORWARD")
        try:
            return router.process(envelope)
        except errors.OnionError as e:
            raise errors.ForwardError(f"Relay {node_id} rejected the message: {e}") from e

    def deliver_to_user(self, user_id, payload: bytes, sender=None):
        user = self.users.get(user_id)
        if user is None:
            raise errors.DeliveryError(f"User {user_id} is unreachable")
        self._record_hop(sender, Address.user(user_id), "DELIVER")
        return user.receive(payload)


# -----------------------------
# HTTP network
# -----------------------------
def _error_message(response):
    try:
        return response.json().get("error", response.text)
    except ValueError:
        return response.text


def _result(response):
    try:
        return response.json().get("result")
    except ValueError:
        return response.text


class HttpNetwork:
    """
    Same interface as `LocalNetwork`, over HTTP. Envelopes travel as base64
    text, delivered messages as UTF-8 text.
    """

    def __init__(self, resolver=None, session=None):
        self.resolver = resolver if resolver is not None else AddressResolver()
        self.session = session if session is not None else requests.Session()

    @property
    def timeout(self):
        return self.resolver.config.timeout

    def _post(self, url, body, error):
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[Network] POST {url} failed: {e}")
            raise error(f"POST {url} failed: {e}") from e
        if not 200 <= response.status_code < 300:
            logger.warning(f"[Network] POST {url} returned {response.status_code}")
            raise error(f"POST {url} returned {response.status_code}: {_error_message(response)}")
        return response

    def send_to_relay(self, node_id, envelope: bytes, sender=None):
        url = self.resolver.resolve(Address.relay(node_id)) + "/message"
        response = self._post(url, {"message": b64encode(envelope)}, errors.ForwardError)
        return _result(response)

    def deliver_to_user(self, user_id, payload: bytes, sender=None):
        url = self.resolver.resolve(Address.user(user_id)) + "/message"
        message = payload.decode("utf-8", errors="replace")
        response = self._post(url, {"message": message}, errors.DeliveryError)
        return _result(response)


REGISTRY_ERRORS = {
    cls.__name__: cls
    for cls in (errors.DuplicateIdError, errors.DuplicateKeyError, errors.MalformedKeyError)
}


class HttpRegistryClient:
    """
    Talks to the registry service; drop-in for `NodeRegistry` on the
    register/list side.
    """

    def __init__(self, resolver=None, session=None):
        self.resolver = resolver if resolver is not None else AddressResolver()
        self.session = session if session is not None else requests.Session()

    def _request(self, method, path, **kwargs):
        url = self.resolver.registry_url() + path
        try:
            return self.session.request(method, url, timeout=self.resolver.config.timeout, **kwargs)
        except requests.RequestException as e:
            raise errors.RegistryUnavailableError(f"Registry unreachable at {url}: {e}") from e

    def register(self, node_id, pub_key) -> Node:
        response = self._request("POST", "/registerNode", json={"nodeId": node_id, "pubKey": pub_key})
        if response.status_code == 201:
            return Node.from_dict(response.json()["node"])
        try:
            error_type = response.json().get("type")
        except ValueError:
            error_type = None
        error = REGISTRY_ERRORS.get(error_type, errors.RegistryError)
        if response.status_code >= 500:
            error = errors.RegistryUnavailableError
        raise error(_error_message(response))

    def list_nodes(self):
        response = self._request("GET", "/getNodeRegistry")
        if response.status_code != 200:
            raise errors.RegistryUnavailableError(
                f"Registry returned {response.status_code}: {_error_message(response)}"
            )
        return [Node.from_dict(node) for node in response.json()["nodes"]]

    def status(self):
        return self._request("GET", "/status").text
