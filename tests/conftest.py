import random

import pytest
import requests

from onionnet.crypto import generate_key_pair
from onionnet.network import LocalNetwork
from onionnet.registry import NodeRegistry
from onionnet.router import OnionRouter
from onionnet.user import User


@pytest.fixture(scope="session")
def key_pairs():
    """RSA key generation is slow; share five key pairs across the session."""
    return [generate_key_pair() for _ in range(5)]


@pytest.fixture
def registry():
    return NodeRegistry()


@pytest.fixture
def network():
    return LocalNetwork()


@pytest.fixture
def routers(key_pairs, registry, network):
    """Routers 1, 2 and 3 registered with `registry` and reachable on `network`."""
    routers = {}
    for node_id, key_pair in zip((1, 2, 3), key_pairs):
        router = network.add_router(OnionRouter(node_id, network, key_pair))
        router.register(registry)
        routers[node_id] = router
    return routers


@pytest.fixture
def make_user(network, registry):
    def _make_user(user_id, seed=None):
        rng = random.Random(seed) if seed is not None else None
        return network.add_user(User(user_id, network, registry, rng=rng))
    return _make_user


class RecordingNetwork:
    """Collects every transmission instead of performing it."""

    def __init__(self):
        self.sent = []
        self.delivered = []

    def send_to_relay(self, node_id, envelope, sender=None):
        self.sent.append((node_id, envelope))

    def deliver_to_user(self, user_id, payload, sender=None):
        self.delivered.append((user_id, payload))


@pytest.fixture
def recording_network():
    return RecordingNetwork()


class FlaskResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self.text = response.get_data(as_text=True)
        self._json = response.get_json(silent=True)

    def json(self):
        if self._json is None:
            raise ValueError("Response body is not JSON")
        return self._json


class FlaskSession:
    """
    Stands in for `requests.Session`: routes each URL to the Flask app
    mounted at its base URL, through that app's test client.
    """

    def __init__(self):
        self.apps = {}

    def mount(self, base_url, app):
        self.apps[base_url] = app

    def request(self, method, url, json=None, timeout=None):
        for base_url, app in self.apps.items():
            if url.startswith(base_url + "/"):
                client = app.test_client()
                return FlaskResponse(client.open(url[len(base_url):], method=method, json=json))
        raise requests.ConnectionError(f"No service at {url}")

    def post(self, url, json=None, timeout=None):
        return self.request("POST", url, json=json, timeout=timeout)


@pytest.fixture
def flask_session():
    return FlaskSession()
