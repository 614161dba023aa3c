# onionnet/user.py
import logging

from onionnet.circuit import CircuitBuilder
from onionnet.envelope import Address
from onionnet.state import UserState

logger = logging.getLogger(__name__)


class User:
    """
    A user endpoint: sends messages through a fresh circuit and receives
    messages delivered by exit relays.
    """

    def __init__(self, user_id, network, directory, rng=None):
        self.user_id = user_id
        self.network = network
        self.builder = CircuitBuilder(directory, rng=rng)
        self.state = UserState()

    def send_message(self, message: str, destination_user_id: int):
        """
        Build a new circuit for this message and hand the onion to the entry
        relay. Returns the circuit as a list of node ids, entry first.

        Nothing is transmitted if the circuit cannot be built.
        """
        destination = Address.user(destination_user_id)
        path, envelope = self.builder.build(message.encode("utf-8"), destination)
        circuit = [node.node_id for node in path]

        logger.info(f"[User {self.user_id}] Sending onion to relay {circuit[0]} for user {destination_user_id}")
        self.network.send_to_relay(circuit[0], envelope, sender=Address.user(self.user_id))

        self.state.record_sent(message, circuit)
        return circuit

    def receive(self, message):
        if isinstance(message, bytes):
            try:
                message = message.decode("utf-8")
            except UnicodeDecodeError:
                message = message.hex()
        self.state.record_received(message)
        logger.info(f"[User {self.user_id}] Received message: {message}")
        return message

    def messages(self):
        return self.state.messages()
