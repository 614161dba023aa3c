# onionnet/cli.py
import shlex

from onionnet.envelope import MAX_ADDRESS_ID
from onionnet.errors import OnionError
from onionnet.network import LocalNetwork
from onionnet.registry import NodeRegistry
from onionnet.router import OnionRouter
from onionnet.user import User
from onionnet.visualize import TraceGraph


def build_local_network(num_nodes=5, trace=None, key_pairs=None):
    """
    Start `num_nodes` routers in-process, registered with a fresh registry.
    Each router gets its own key pair, taken from `key_pairs` when given.
    """
    registry = NodeRegistry()
    network = LocalNetwork(trace=trace)
    for node_id in range(1, num_nodes + 1):
        key_pair = key_pairs[node_id - 1] if key_pairs else None
        router = network.add_router(OnionRouter(node_id, network, key_pair))
        router.register(registry)
    return registry, network


def run_demo(num_nodes=5, out=print, key_pairs=None):
    registry, network = build_local_network(num_nodes, key_pairs=key_pairs)
    out(f"[Network] Registered nodes: {sorted(n.node_id for n in registry.list_nodes())}")

    alice = network.add_user(User(100, network, registry))
    bob = network.add_user(User(200, network, registry))
    out(f"[Network] Users: Alice (ID={alice.user_id}), Bob (ID={bob.user_id})")

    circuit = alice.send_message("Hello Bob! This is Alice.", bob.user_id)
    out(f"[Alice] Sent through circuit {circuit}")
    out(f"[Bob] Received: {bob.state.last_received_message}")

    circuit = bob.send_message("Hi Alice! Bob here.", alice.user_id)
    out(f"[Bob] Sent through circuit {circuit}")
    out(f"[Alice] Received: {alice.state.last_received_message}")
    return registry, network


class OnionRoutingCLI:
    def __init__(self, num_nodes=5, out=print, key_pairs=None):
        self.out = out
        self.trace = TraceGraph()
        self.registry, self.network = build_local_network(num_nodes, trace=self.trace, key_pairs=key_pairs)
        self.current_user = None
        self.running = False
        self.out("[Network] Registered Nodes:")
        for node in sorted(self.registry.list_nodes(), key=lambda n: n.node_id):
            self.out(f"  - Router {node.node_id}")

    def start(self):
        self.out("\nWelcome to the Onion Routing CLI!")
        self.out("Type 'help' to see available commands.\n")
        self.running = True
        while self.running:
            try:
                user_input = input("onion-routing> ")
            except (EOFError, KeyboardInterrupt):
                self.out("\nExiting Onion Routing CLI.")
                break
            try:
                self.execute(user_input)
            except Exception as e:
                self.out(f"Error: {e}")

    def execute(self, line):
        if not line.strip():
            return
        try:
            args = shlex.split(line)
        except ValueError as e:
            self.out(f"Error: {e}")
            return
        command = args[0].lower()
        getattr(self, f"cmd_{command}", self.cmd_unknown)(args[1:])

    def _user(self, user_id):
        user = self.network.users.get(user_id)
        if user is None:
            user = self.network.add_user(User(user_id, self.network, self.registry))
            self.out(f"Registered new user {user_id}")
        return user

    @staticmethod
    def _parse_id(text):
        try:
            value = int(text)
        except ValueError:
            return None
        return value if 0 <= value <= MAX_ADDRESS_ID else None

    def cmd_help(self, args):
        self.out("""
Available Commands:
  login <user_id>                     : Login as a user (created on first login).
  logout                              : Logout the current user.
  nodes                               : List registered routers.
  send "<message>" to <user_id>       : Send a message through a fresh 3-hop circuit.
  show messages                       : Show received messages for the logged-in user.
  draw circuit                        : Draw the circuit used by the last message sent.
  visualize [file.html]               : Write the observed hops as an HTML graph.
  exit                                : Exit the CLI.
  help                                : Show this help message.
""")

    def cmd_login(self, args):
        if self.current_user:
            self.out(f"Already logged in as user {self.current_user.user_id}. Please logout first.")
            return
        user_id = self._parse_id(args[0]) if len(args) == 1 else None
        if user_id is None:
            self.out("Usage: login <user_id>")
            return
        self.current_user = self._user(user_id)
        self.out(f"Logged in as user {user_id}.")

    def cmd_logout(self, args):
        if not self.current_user:
            self.out("No user is currently logged in.")
            return
        self.out(f"Logged out from user {self.current_user.user_id}.")
        self.current_user = None

    def cmd_nodes(self, args):
        for node in sorted(self.registry.list_nodes(), key=lambda n: n.node_id):
            self.out(f"  - Router {node.node_id}: {node.pub_key[:24]}...")

    def cmd_send(self, args):
        if not self.current_user:
            self.out("Please login as a user first.")
            return
        if len(args) != 3 or args[1].lower() != "to":
            self.out('Usage: send "<message>" to <user_id>')
            return
        recipient_id = self._parse_id(args[2])
        if recipient_id is None:
            self.out('Usage: send "<message>" to <user_id>')
            return
        self._user(recipient_id)
        try:
            circuit = self.current_user.send_message(args[0], recipient_id)
        except OnionError as e:
            self.out(f"Failed to send message: {e}")
            return
        self.out(f"Message sent through routers {circuit}.")

    def cmd_show(self, args):
        if not self.current_user:
            self.out("Please login as a user first.")
            return
        if len(args) != 1 or args[0].lower() != "messages":
            self.out("Usage: show messages")
            return
        messages = self.current_user.messages()
        self.out(f"\n[User {self.current_user.user_id}] Received messages:")
        for message in messages:
            self.out(f"Received message: {message}")
        if not messages:
            self.out("No messages received.")

    def cmd_draw(self, args):
        if not self.current_user:
            self.out("Please login as a user first.")
            return
        if len(args) != 1 or args[0].lower() != "circuit":
            self.out("Usage: draw circuit")
            return
        circuit = self.current_user.state.last_circuit
        if not circuit:
            self.out("No message sent yet.")
            return
        self.out(f"\nSource: user {self.current_user.user_id}")
        for i, node_id in enumerate(circuit):
            self.out(f"Hop {i + 1}: Router {node_id}")
            if i < len(circuit) - 1:
                self.out("      |")
        self.out(f"Exit Node: Router {circuit[-1]}\n")

    def cmd_visualize(self, args):
        output_file = args[0] if args else "onion_routing_simulation.html"
        if not output_file.endswith(".html"):
            self.out("Usage: visualize [file.html]")
            return
        try:
            self.trace.render(output_file)
        except OSError as e:
            self.out(f"Failed to write {output_file}: {e}")
            return
        self.out(f"Wrote {output_file}.")

    def cmd_exit(self, args):
        self.out("Exiting Onion Routing CLI.")
        self.running = False

    def cmd_unknown(self, args):
        self.out("Unknown command. Type 'help' to see available commands.")
