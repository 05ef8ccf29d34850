import matplotlib.pyplot as plt
import networkx as nx
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .belief import Belief
from .graph_builder import forward_graph
from .network import Network


def to_digraph(network: Network, include_future: bool = False) -> nx.DiGraph:
    """Forward-dependency graph of the snapshot (parent -> child).

    With `include_future`, future nodes replace present nodes of the same
    name, as they do during temporal roll-forward.
    """
    nodes = dict(network.nodes)
    if include_future:
        nodes.update(network.future_nodes)
    return forward_graph(nodes)


def hierarchical_layers(G: nx.DiGraph) -> Dict[str, int]:
    """Depth of every node: roots are layer 0, children sit below their deepest parent."""
    if not nx.is_directed_acyclic_graph(G):
        raise ValueError("Graph must be a DAG (Directed Acyclic Graph)")

    layers: Dict[str, int] = {}
    for node in nx.topological_sort(G):
        parents = list(G.predecessors(node))
        if parents:
            layers[node] = max(layers[p] for p in parents) + 1
        else:
            layers[node] = 0  # root nodes at top layer
    return layers


def markov_blanket(G: nx.DiGraph, name: str) -> Set[str]:
    """Parents, children, and co-parents of `name` in the dependency graph."""
    if name not in G:
        raise ValueError(f"Unknown variable '{name}'")
    children = set(G.successors(name))
    blanket = set(G.predecessors(name)) | children
    for child in children:
        blanket.update(G.predecessors(child))
    blanket.discard(name)
    return blanket


def structure_summary(network: Network) -> Dict[str, Any]:
    """Edge count, mean Markov blanket size and approximate treewidth of the present graph."""
    G = to_digraph(network)
    sizes = [len(markov_blanket(G, n)) for n in G.nodes()]
    summary: Dict[str, Any] = {
        "variables": G.number_of_nodes(),
        "edges": G.number_of_edges(),
        "avg_markov_blanket": sum(sizes) / len(sizes) if sizes else 0.0,
        "treewidth": 0,
    }
    if G.number_of_nodes() > 0:
        from networkx.algorithms.approximation import treewidth
        width, _ = treewidth.treewidth_min_degree(G.to_undirected())
        summary["treewidth"] = width
    return summary


def _node_label(name: str, belief: Optional[Belief]) -> str:
    if belief is None:
        return name
    outcome = belief.outcomes[0]
    return f"{name}\nP({outcome})={belief.chance(outcome):.3f}"


def draw_network(network: Network,
                 beliefs: Optional[Mapping[str, Belief]] = None,
                 evidence: Iterable[str] = (),
                 target: Optional[str] = None,
                 title: str = "Belief network",
                 node_size: int = 3000,
                 font_size: int = 10,
                 figsize: Tuple[int, int] = (10, 6),
                 show: bool = False) -> Dict[str, Any]:
    """
    Draws the network top-down, parents above children, with each node
    labelled by the chance of its first outcome.

    Args:
        network: Network snapshot to draw
        beliefs: Beliefs to print under the variable names (missing ones are left out)
        evidence: Observed variables, drawn in grey
        target: Solved variable, drawn in orange
        title: Plot title
        node_size: Size of nodes
        font_size: Font size for labels
        figsize: Figure size (width, height)
        show: Whether to call plt.show()

    Returns:
        Dictionary with positions, layers, node colors and the matplotlib figure
    """
    G = to_digraph(network)
    layers = hierarchical_layers(G)
    beliefs = beliefs or {}
    observed = set(evidence)

    layer_nodes: Dict[int, List[str]] = {}
    for node, layer in layers.items():
        layer_nodes.setdefault(layer, []).append(node)

    pos = {}
    for layer, nodes in layer_nodes.items():
        n = len(nodes)
        for i, node in enumerate(sorted(nodes)):
            pos[node] = (i - n/2, -layer)

    colors = {}
    for node in G.nodes():
        if node == target:
            colors[node] = 'orange'
        elif node in observed:
            colors[node] = 'lightgrey'
        else:
            colors[node] = 'lightblue'
    labels = {node: _node_label(node, beliefs.get(node)) for node in G.nodes()}

    fig = plt.figure(figsize=figsize)
    nx.draw(G, pos, labels=labels, node_size=node_size, node_color=[colors[n] for n in G.nodes()],
            font_size=font_size, arrows=True)
    plt.title(title)
    if show:
        plt.show()

    return {
        "positions": pos,
        "layers": layers,
        "colors": colors,
        "labels": labels,
        "figure": fig,
    }


def temporal_variables(network: Network) -> List[str]:
    """Future variables that are rolled forward after each solve."""
    return [name for name, node in network.future_nodes.items() if node.backward is None]
