import random

import pytest

from onionnet.circuit import CircuitBuilder, build_onion
from onionnet.crypto import export_public_key
from onionnet.envelope import Address
from onionnet.errors import InsufficientNodesError, RegistryError
from onionnet.registry import NodeRegistry
from onionnet.router import OnionRouter
from onionnet.user import User


def registry_with(key_pairs, count):
    registry = NodeRegistry()
    for node_id, key_pair in enumerate(key_pairs[:count], start=1):
        registry.register(node_id, export_public_key(key_pair.public_key))
    return registry


class TestSelectPath:

    def test_three_distinct_nodes(self, key_pairs):
        builder = CircuitBuilder(registry_with(key_pairs, 5), rng=random.Random(1))
        for _ in range(20):
            path = builder.select_path()
            assert len(path) == 3
            assert len({node.node_id for node in path}) == 3

    def test_seeded_rng_is_reproducible(self, key_pairs):
        registry = registry_with(key_pairs, 5)
        first = CircuitBuilder(registry, rng=random.Random(1234)).select_path()
        second = CircuitBuilder(registry, rng=random.Random(1234)).select_path()
        assert first == second

    def test_insufficient_nodes(self, key_pairs):
        builder = CircuitBuilder(registry_with(key_pairs, 2))
        with pytest.raises(InsufficientNodesError):
            builder.select_path()

    def test_empty_registry(self):
        with pytest.raises(InsufficientNodesError):
            CircuitBuilder(NodeRegistry()).build(b"hello", Address.user(1))

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            CircuitBuilder(NodeRegistry(), length=0)


class TestBuildOnion:

    def test_onion_round_trip(self, key_pairs, recording_network):
        registry = registry_with(key_pairs, 3)
        routers = {
            node_id: OnionRouter(node_id, recording_network, key_pairs[node_id - 1])
            for node_id in (1, 2, 3)
        }
        path, envelope = CircuitBuilder(registry, rng=random.Random(5)).build(
            b"hello", Address.user(42))

        data = envelope
        for i, node in enumerate(path):
            layer = routers[node.node_id].peel(data)
            if i < len(path) - 1:
                assert layer.next_hop == Address.relay(path[i + 1].node_id)
                assert layer.payload != b"hello"
            data = layer.payload

        assert layer.next_hop == Address.user(42)
        assert data == b"hello"

    def test_each_layer_adds_fixed_overhead(self, key_pairs):
        registry = registry_with(key_pairs, 3)
        path = sorted(registry.list_nodes(), key=lambda n: n.node_id)
        envelope = build_onion(path, b"hello", Address.user(42))
        overhead = 256 + 12 + 16 + 11
        assert len(envelope) == len(b"hello") + 3 * overhead

    def test_payload_size_is_not_bounded_by_rsa(self, key_pairs, recording_network):
        registry = registry_with(key_pairs, 3)
        path = sorted(registry.list_nodes(), key=lambda n: n.node_id)
        message = b"m" * 10000
        envelope = build_onion(path, message, Address.user(1))

        data = envelope
        for node in path:
            data = OnionRouter(node.node_id, recording_network, key_pairs[node.node_id - 1]).peel(data).payload
        assert data == message

    def test_empty_path(self):
        with pytest.raises(ValueError):
            build_onion([], b"hello", Address.user(1))


class TestSendWithoutEnoughNodes:

    def test_nothing_is_transmitted(self, key_pairs, recording_network):
        user = User(1, recording_network, registry_with(key_pairs, 2))
        with pytest.raises(InsufficientNodesError):
            user.send_message("hello", 2)
        assert recording_network.sent == []
        assert user.state.last_sent_message is None

    def test_unaddressable_relay_never_joins_a_circuit(self, key_pairs, recording_network):
        registry = registry_with(key_pairs, 2)
        with pytest.raises(RegistryError):
            registry.register(10 ** 10, export_public_key(key_pairs[2].public_key))
        user = User(7, recording_network, registry)
        with pytest.raises(InsufficientNodesError):
            user.send_message("hello", 42)
        assert recording_network.sent == []
