# onionnet/visualize.py
import logging

import networkx as nx
from pyvis.network import Network

from onionnet.envelope import Address

logger = logging.getLogger(__name__)


def node_key(address: Address) -> str:
    """Graph key for a participant: "R3" for relay 3, "U42" for user 42."""
    return f"{address.kind.value}{address.id}"


class TraceGraph:
    """
    Directed graph of everything observed on a local network: routers and
    users as vertices, each forward or delivery as a labelled edge.
    Edges are overwritten when the same hop is seen again.
    """

    def __init__(self):
        self.graph = nx.DiGraph()
        self.step = 0

    def add_node_if_missing(self, address: Address, label=None):
        key = node_key(address)
        if key not in self.graph.nodes:
            self.graph.add_node(key, label=label if label else key)
        return key

    def add_router(self, node_id):
        return self.add_node_if_missing(Address.relay(node_id), f"Router {node_id}")

    def add_user(self, user_id):
        return self.add_node_if_missing(Address.user(user_id), f"User {user_id}")

    def add_hop(self, sender: Address, target: Address, label):
        self.step += 1
        src = self.add_node_if_missing(sender)
        dst = self.add_node_if_missing(target)
        self.graph.add_edge(src, dst, label=f"{self.step}: {label}")

    def hops(self):
        """Edges in the order they were last observed."""
        edges = self.graph.edges(data="label")
        return sorted(edges, key=lambda edge: int(edge[2].split(":")[0]))

    def render(self, output_file="onion_routing_simulation.html", title=""):
        net = Network(
            directed=True,
            height="600px",
            width="100%",
            notebook=False,
            cdn_resources="remote",
        )
        net.from_nx(self.graph)
        net.heading = title or f"Step {self.step}"
        net.write_html(output_file, notebook=False)
        logger.info(f"[Visualizer] Wrote {self.graph.number_of_nodes()} nodes and "
                    f"{self.graph.number_of_edges()} hops to '{output_file}'")
        return output_file
