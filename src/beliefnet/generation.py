"""
Random discrete networks from DAGs with controllable table properties.

This module builds `Network` snapshots from NetworkX DAGs, sampling
priors and conditional tables according to configurable parameters:

- Variable arity strategy (fixed or ranged)
- Table skewness via Dirichlet(alpha)
- Determinism fraction: proportion of table rows set to 0/1

The solver supports at most two parents per variable, so DAGs with a
higher in-degree are rejected.

Example (API):
    >>> import networkx as nx
    >>> dag = nx.DiGraph([("A", "B"), ("B", "C")])
    >>> network, meta = generate_network_from_dag(
    ...     dag,
    ...     arity_strategy={"type": "range", "min": 2, "max": 3},
    ...     dirichlet_alpha=0.5,
    ...     seed=123,
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np

from .belief import Belief, ConditionalTable
from .network import Network
from .relations import DependsOn, DependsOnPair, Prior, Relation


# ------------------------------
# Types and configuration models
# ------------------------------

@dataclass
class ArityStrategy:
    type: str  # "fixed" | "range"
    fixed: Optional[int] = None
    min: Optional[int] = None
    max: Optional[int] = None

    def draw_cardinalities(self, nodes: Sequence[str], rng: np.random.Generator) -> Dict[str, int]:
        if self.type == "fixed":
            if not self.fixed or self.fixed < 2:
                raise ValueError("fixed arity must be >= 2")
            return {n: int(self.fixed) for n in nodes}
        elif self.type == "range":
            if not self.min or not self.max or self.min < 2 or self.max < self.min:
                raise ValueError("range arity requires 2 <= min <= max")
            return {n: int(rng.integers(self.min, self.max + 1)) for n in nodes}
        else:
            raise ValueError("Unsupported arity strategy; use 'fixed' or 'range'")


# ------------------------------
# Core generation functions
# ------------------------------

def _sample_belief(
    states: Sequence[str],
    dirichlet_alpha: float,
    deterministic: bool,
    rng: np.random.Generator,
) -> Belief:
    if deterministic:
        probs = np.zeros(len(states), dtype=float)
        probs[int(rng.integers(0, len(states)))] = 1.0
    else:
        probs = rng.dirichlet([dirichlet_alpha] * len(states))
    return Belief(zip(states, probs))


def _sample_table(
    parents: Sequence[str],
    states: Sequence[str],
    state_names: Dict[str, List[str]],
    dirichlet_alpha: float,
    determinism_fraction: float,
    rng: np.random.Generator,
) -> ConditionalTable:
    """Sample one row per parent assignment, parents[0] slowest changing."""
    assignments = list(product(*(state_names[p] for p in parents)))
    deterministic_rows = set()
    if determinism_fraction > 0.0:
        num_deterministic = int(round(determinism_fraction * len(assignments)))
        if num_deterministic > 0:
            deterministic_rows = set(rng.choice(len(assignments), size=num_deterministic, replace=False).tolist())

    rows = {}
    for idx, assignment in enumerate(assignments):
        key = assignment if len(parents) == 2 else assignment[0]
        rows[key] = _sample_belief(states, dirichlet_alpha, idx in deterministic_rows, rng)
    return ConditionalTable(rows, arity=len(parents))


def generate_network_from_dag(
    dag: nx.DiGraph,
    arity_strategy: Union[Dict[str, Any], ArityStrategy],
    dirichlet_alpha: float = 1.0,
    determinism_fraction: float = 0.0,
    seed: Optional[int] = None,
) -> Tuple[Network, Dict[str, Any]]:
    """Generate a Network with sampled priors and tables for the given DAG.

    Args:
        dag: A NetworkX DiGraph; node labels become variable names (str)
        arity_strategy: dict or ArityStrategy specifying node cardinalities
        dirichlet_alpha: Dirichlet concentration for table rows (<=1 skewed, 1 uniform, >1 flat)
        determinism_fraction: fraction of table rows set to deterministic 0/1
        seed: RNG seed

    Returns:
        (network, metadata) where metadata includes chosen arities and
        generation parameters.
    """
    if not nx.is_directed_acyclic_graph(dag):
        raise ValueError("Input graph must be a DAG")
    too_many = [str(n) for n in dag.nodes() if dag.in_degree(n) > 2]
    if too_many:
        raise ValueError(f"At most two parents per variable are supported; offending nodes: {too_many}")

    rng = np.random.default_rng(seed)
    if isinstance(arity_strategy, dict):
        strat = ArityStrategy(**arity_strategy)  # type: ignore[arg-type]
    else:
        strat = arity_strategy

    order = [str(n) for n in nx.topological_sort(dag)]
    cards = strat.draw_cardinalities(order, rng)
    state_names: Dict[str, List[str]] = {n: [f"s{i}" for i in range(cards[n])] for n in order}

    description: Dict[str, Tuple[Relation, ...]] = {}
    for node in nx.topological_sort(dag):
        name = str(node)
        parents = [str(p) for p in dag.predecessors(node)]
        states = state_names[name]
        if not parents:
            deterministic = determinism_fraction > 0.0 and rng.random() < determinism_fraction
            description[name] = (Prior(_sample_belief(states, dirichlet_alpha, deterministic, rng)),)
            continue
        table = _sample_table(parents, states, state_names, dirichlet_alpha, determinism_fraction, rng)
        if len(parents) == 1:
            description[name] = (DependsOn(parents[0], table),)
        else:
            description[name] = (DependsOnPair(parents[0], parents[1], table),)

    metadata: Dict[str, Any] = {
        "node_cardinalities": cards,
        "dirichlet_alpha": dirichlet_alpha,
        "determinism_fraction": determinism_fraction,
        "seed": seed,
    }
    return Network.from_descriptions(description), metadata
