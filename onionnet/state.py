# onionnet/state.py
"""
Diagnostic "last message" fields owned by each service instance.

Values are overwritten on every message (last write wins) and are never
read by the protocol itself.
"""
import threading
from collections import deque

from onionnet.config import INBOX_SIZE


class RouterState:
    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        with self._lock:
            self.last_received_encrypted_message = None
            self.last_received_decrypted_message = None
            self.last_message_destination = None

    def record_encrypted(self, message: str):
        with self._lock:
            self.last_received_encrypted_message = message

    def record_decrypted(self, message: str, destination):
        with self._lock:
            self.last_received_decrypted_message = message
            self.last_message_destination = destination


class UserState:
    def __init__(self, inbox_size=INBOX_SIZE):
        self._lock = threading.Lock()
        self.inbox_size = inbox_size
        self.reset()

    def reset(self):
        with self._lock:
            self.last_received_message = None
            self.last_sent_message = None
            self.last_circuit = None
            # Oldest messages drop off once the inbox is full.
            self.inbox = deque(maxlen=self.inbox_size)

    def record_sent(self, message: str, circuit):
        with self._lock:
            self.last_sent_message = message
            self.last_circuit = list(circuit)

    def record_received(self, message: str):
        with self._lock:
            self.last_received_message = message
            self.inbox.append(message)

    def messages(self):
        with self._lock:
            return list(self.inbox)
