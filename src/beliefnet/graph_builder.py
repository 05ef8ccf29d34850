"""
Transform declarative network descriptions into solver nodes.

A description maps variable names to relation descriptors (see
`relations`). Links only need to be declared on one end: `complete_description`
mirrors every `DependsOn`/`DependsOnPair` as `FeedsInto` on the parents and
vice versa, so the forward rule of a child and the backward rules of its
parents always come from the same table.

Main Functions:
    - complete_description(): mirror links on both endpoints
    - build_graph(): description -> (nodes, priors)
    - collect_cases(): description -> outcome domain per variable
    - forward_graph() / ensure_acyclic(): networkx view and cycle check
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import networkx as nx

from .belief import Belief, Outcome
from .node import BackwardRule, ForwardRule, Node
from .relations import DependsOn, DependsOnPair, Description, FeedsInto, Prior, Relation

logger = logging.getLogger(__name__)


def complete_description(description: Description) -> Dict[str, Tuple[Relation, ...]]:
    """Return a description where every link appears on both of its endpoints.

    Relations keep their declaration order and duplicates collapse, so a link
    declared from both ends is kept once per endpoint.
    """
    completed: Dict[str, Dict[Relation, None]] = {name: {} for name in description}

    def add(name: str, relation: Relation) -> None:
        completed.setdefault(name, {})[relation] = None

    for name, relations in description.items():
        for relation in relations:
            add(name, relation)
            if isinstance(relation, Prior):
                continue
            elif isinstance(relation, DependsOn):
                add(relation.parent, FeedsInto(name, relation.table))
            elif isinstance(relation, DependsOnPair):
                add(relation.first, FeedsInto(name, relation.table, partner=relation.second, position=0))
                add(relation.second, FeedsInto(name, relation.table, partner=relation.first, position=1))
            elif isinstance(relation, FeedsInto):
                if relation.partner is None:
                    add(relation.child, DependsOn(name, relation.table))
                elif relation.position == 0:
                    add(relation.child, DependsOnPair(name, relation.partner, relation.table))
                    add(relation.partner, FeedsInto(relation.child, relation.table, partner=name, position=1))
                else:
                    add(relation.child, DependsOnPair(relation.partner, name, relation.table))
                    add(relation.partner, FeedsInto(relation.child, relation.table, partner=name, position=0))
            else:
                raise TypeError(f"Unknown relation for '{name}': {relation!r}")

    return {name: tuple(relations) for name, relations in completed.items()}


def _forward_rule(name: str, relation: Relation) -> Optional[ForwardRule]:
    if isinstance(relation, DependsOn):
        return ForwardRule((relation.parent,), relation.table)
    if isinstance(relation, DependsOnPair):
        return ForwardRule((relation.first, relation.second), relation.table)
    return None


def build_graph(description: Description) -> Tuple[Dict[str, Node], Dict[str, Belief]]:
    """Build the node mapping and the initial prior table.

    Raises:
        ValueError: if a variable declares more than one prior or more than
            one forward relation
        TypeError: on an unknown relation descriptor
    """
    nodes: Dict[str, Node] = {}
    priors: Dict[str, Belief] = {}

    for name, relations in complete_description(description).items():
        forward: Optional[ForwardRule] = None
        links: List[FeedsInto] = []
        for relation in relations:
            if isinstance(relation, Prior):
                if name in priors:
                    raise ValueError(f"Variable '{name}' declares more than one prior")
                priors[name] = relation.belief
            elif isinstance(relation, (DependsOn, DependsOnPair)):
                if forward is not None:
                    raise ValueError(f"Variable '{name}' declares more than one parent table")
                forward = _forward_rule(name, relation)
            elif isinstance(relation, FeedsInto):
                links.append(relation)
            else:
                raise TypeError(f"Unknown relation for '{name}': {relation!r}")

        backward = BackwardRule(name, tuple(links)) if links else None
        nodes[name] = Node(name, forward, backward)

    logger.debug("Built %d node(s), %d prior(s)", len(nodes), len(priors))
    return nodes, priors


def collect_cases(description: Description) -> Dict[str, Tuple[Outcome, ...]]:
    """Outcome domain of every variable, from all tables and priors that mention it."""
    cases: Dict[str, Tuple[Outcome, ...]] = {}
    for name, relations in complete_description(description).items():
        domain: Dict[Outcome, None] = {}
        for relation in relations:
            if isinstance(relation, Prior):
                values = relation.belief.outcomes
            elif isinstance(relation, (DependsOn, DependsOnPair)):
                values = relation.table.outcomes
            elif isinstance(relation, FeedsInto):
                values = relation.table.parent_values(relation.position)
            else:
                raise TypeError(f"Unknown relation for '{name}': {relation!r}")
            domain.update(dict.fromkeys(values))
        cases[name] = tuple(domain)
    return cases


def forward_graph(nodes: Dict[str, Node]) -> nx.DiGraph:
    """Directed graph of forward dependencies (parent -> child)."""
    G = nx.DiGraph()
    G.add_nodes_from(nodes)
    for name, node in nodes.items():
        G.add_edges_from((parent, name) for parent in node.parents)
    return G


def ensure_acyclic(nodes: Dict[str, Node], label: str = "network") -> nx.DiGraph:
    """Return the forward graph, or raise ValueError naming a dependency cycle."""
    G = forward_graph(nodes)
    try:
        cycle = nx.find_cycle(G)
    except nx.NetworkXNoCycle:
        return G
    path = " -> ".join([cycle[0][0]] + [v for _, v in cycle])
    raise ValueError(f"Forward dependencies of the {label} must be acyclic, found cycle: {path}")
