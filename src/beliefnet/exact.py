"""
Exact reference inference through pgmpy.

Converts a network snapshot into a pgmpy DiscreteBayesianNetwork (one
TabularCPD per variable, built from the snapshot's current priors and
forward tables) and answers queries with variable elimination. Used to
cross-check the solver.

pgmpy state names are the `str()` of each outcome; answers are mapped back
to the original outcome values.
"""

from __future__ import annotations

from itertools import product
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
from pgmpy.factors.discrete import TabularCPD
from pgmpy.inference import VariableElimination
from pgmpy.models import DiscreteBayesianNetwork

from .belief import Belief
from .network import Network


def _state_names(network: Network, name: str) -> List[str]:
    return [str(o) for o in network.cases[name]]


def _conditional_values(network: Network, name: str, parents: Tuple[str, ...]) -> np.ndarray:
    """CPT matrix of shape (card(name), prod(card(parents))), first parent slowest."""
    table = network.nodes[name].forward.table
    rows = table.rows
    columns = []
    for assignment in product(*(network.cases[p] for p in parents)):
        key = assignment if table.arity == 2 else assignment[0]
        if key not in rows:
            raise ValueError(f"Table of '{name}' has no row for {dict(zip(parents, assignment))}")
        columns.append(rows[key].aligned(network.cases[name]))
    return np.column_stack(columns)


def to_pgmpy(network: Network) -> DiscreteBayesianNetwork:
    """Build a pgmpy model of the snapshot's present-time network.

    Variables with a prior use it as a root CPD (priors win over forward
    tables, as in the solver); the others use their forward table.
    """
    priors = network.priors
    edges: List[Tuple[str, str]] = []
    cpds: List[TabularCPD] = []

    for name, node in network.nodes.items():
        card = len(network.cases[name])
        if name in priors:
            values = priors[name].aligned(network.cases[name]).reshape(card, 1)
            cpd = TabularCPD(
                variable=name,
                variable_card=card,
                values=values,
                state_names={name: _state_names(network, name)},
            )
        elif node.forward is not None:
            parents = node.forward.parents
            edges.extend((p, name) for p in parents)
            cpd = TabularCPD(
                variable=name,
                variable_card=card,
                values=_conditional_values(network, name, parents),
                evidence=list(parents),
                evidence_card=[len(network.cases[p]) for p in parents],
                state_names={
                    **{name: _state_names(network, name)},
                    **{p: _state_names(network, p) for p in parents},
                },
            )
        else:
            raise ValueError(f"Variable '{name}' has neither a prior nor a parent table")
        cpds.append(cpd)

    model = DiscreteBayesianNetwork(edges)
    model.add_nodes_from(network.nodes)
    model.add_cpds(*cpds)
    model.check_model()
    return model


def exact_query(network: Network, variable: str, evidence: Optional[Mapping[str, Any]] = None) -> Belief:
    """Exact posterior of `variable` given hard `evidence` (name -> outcome value)."""
    pg_evidence: Dict[str, str] = {}
    for name, value in (evidence or {}).items():
        if isinstance(value, Belief):
            raise ValueError(f"Exact reference supports hard evidence only; got a belief for '{name}'")
        if value not in network.cases.get(name, ()):
            raise ValueError(f"Evidence value {value!r} for '{name}' is outside its domain")
        pg_evidence[name] = str(value)

    engine = VariableElimination(to_pgmpy(network))
    factor = engine.query(variables=[variable], evidence=pg_evidence or None, show_progress=False)
    by_label = {str(o): o for o in network.cases[variable]}
    labels = factor.state_names[variable]
    return Belief({by_label[label]: float(p) for label, p in zip(labels, factor.values)})
