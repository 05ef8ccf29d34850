"""
Network snapshots, evidence and temporal roll-forward.

A `Network` is an immutable snapshot of a (dynamic) Bayesian network: the
present-time nodes, the nodes describing the next time step, the outcome
domain of every variable and a lazily produced prior table. Solving a
variable returns an `Iteration` holding the solved belief and the next
snapshot, whose priors carry the one-step-ahead beliefs of the temporal
variables:

    >>> with NetworkBuilder() as net:
    ...     net.prior("burglar", 0.001)
    ...     net.prior("earthquake", 0.002)
    ...     net.depends_on_pair("alarm", ("burglar", "earthquake"), {
    ...         (True, True): 0.95, (True, False): 0.94,
    ...         (False, True): 0.29, (False, False): 0.001,
    ...     })
    >>> result = net.network.evidences(alarm=True, earthquake=False).solve("burglar")
    >>> round(result.value.chance(True), 3)
    0.485

Snapshots are never modified: solving the same snapshot twice with the
same evidence yields identical beliefs, and a snapshot can be shared by
several threads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .belief import Belief, ConditionalTable, Outcome, flip, sure
from .deferred import Deferred
from .graph_builder import build_graph, collect_cases, ensure_acyclic
from .node import Node
from .relations import DependsOn, DependsOnPair, Description, FeedsInto, Prior, Relation
from .solver import Solver

logger = logging.getLogger(__name__)

BeliefLike = Union[Belief, float]


@dataclass(frozen=True)
class Iteration:
    """Result of one solve: the solved belief (None if unresolvable) and the next snapshot."""
    value: Optional[Belief]
    next: "Network"


class EvidenceQuery:
    """A network paired with an evidence set, ready to be solved."""

    def __init__(self, network: "Network", evidences: Mapping[str, Belief]):
        self._network = network
        self.evidences: Mapping[str, Belief] = MappingProxyType(dict(evidences))

    def solve(self, to_solve: str) -> Iteration:
        return self._network._solve(to_solve, self.evidences)

    def __repr__(self) -> str:
        return f"EvidenceQuery({dict(self.evidences)!r})"


class Network:
    """Immutable network snapshot.

    Args:
        nodes: present-time nodes
        future_nodes: nodes describing the next time step
        cases: outcome domain per variable
        priors: deferred prior table
    """

    def __init__(
        self,
        nodes: Mapping[str, Node],
        future_nodes: Mapping[str, Node],
        cases: Mapping[str, Tuple[Outcome, ...]],
        priors: Deferred[Mapping[str, Belief]],
    ):
        self._nodes = MappingProxyType(dict(nodes))
        self._future_nodes = MappingProxyType(dict(future_nodes))
        self._cases = MappingProxyType(dict(cases))
        self._priors = priors

    @classmethod
    def from_descriptions(
        cls,
        description: Description,
        future_description: Optional[Description] = None,
    ) -> "Network":
        """Build a snapshot from present-time and future-time descriptions.

        Raises:
            ValueError: if the description is malformed or the forward
                dependencies (alone, or merged with the future nodes) form a cycle
        """
        nodes, priors = build_graph(description)
        future_nodes, _ = build_graph(future_description or {})
        ensure_acyclic(nodes, "present network")
        if future_nodes:
            ensure_acyclic({**nodes, **future_nodes}, "present and future network")
        cases = collect_cases(description)
        frozen_priors = MappingProxyType(dict(priors))
        return cls(nodes, future_nodes, cases, Deferred(lambda: frozen_priors))

    @property
    def nodes(self) -> Mapping[str, Node]:
        return self._nodes

    @property
    def future_nodes(self) -> Mapping[str, Node]:
        return self._future_nodes

    @property
    def cases(self) -> Mapping[str, Tuple[Outcome, ...]]:
        return self._cases

    @property
    def priors(self) -> Mapping[str, Belief]:
        """The prior table, materialized on first access."""
        return self._priors.get()

    def solve(self, to_solve: str) -> Iteration:
        return self._solve(to_solve, {})

    def evidences(self, *pairs: Union[Tuple[str, Any], Mapping[str, Any]], **named: Any) -> EvidenceQuery:
        """Attach evidence given as (name, value) / (name, Belief) pairs, mappings or keywords.

        A bare value becomes a sure belief over the variable's domain.
        """
        items: List[Tuple[str, Any]] = []
        for pair in pairs:
            if isinstance(pair, Mapping):
                items.extend(pair.items())
            else:
                name, value = pair
                items.append((name, value))
        items.extend(named.items())
        return EvidenceQuery(self, dict(self._evidence(name, value) for name, value in items))

    def _evidence(self, name: str, value: Any) -> Tuple[str, Belief]:
        if name not in self._cases:
            raise ValueError(f"Unknown variable '{name}'; known variables: {list(self._cases)}")
        domain = self._cases[name]
        if isinstance(value, Belief):
            outside = [o for o in value.outcomes if o not in domain]
            if outside:
                raise ValueError(f"Evidence for '{name}' has outcomes {outside} outside its domain {domain}")
            return name, value
        if value not in domain:
            raise ValueError(f"Evidence value {value!r} for '{name}' is outside its domain {domain}")
        return name, sure(value, domain)

    def _solve(self, to_solve: str, evidences: Mapping[str, Belief]) -> Iteration:
        if to_solve not in self._nodes:
            raise ValueError(f"Unknown variable '{to_solve}'; known variables: {list(self._nodes)}")

        priors = self._priors.get()
        post = Solver(self._nodes, priors)(to_solve, evidences)
        value = post.get(to_solve)
        logger.info("Solved '%s' with %d evidence(s): %r", to_solve, len(evidences), value)

        future_solver = Solver({**self._nodes, **self._future_nodes}, {})
        temporal = [name for name, node in self._future_nodes.items() if node.backward is None]

        def roll_forward() -> Mapping[str, Belief]:
            futures: Dict[str, Belief] = {}
            for name in temporal:
                # drop the present belief so the future rule re-derives it
                evidence = {k: v for k, v in post.items() if k != name}
                belief = future_solver(name, evidence).get(name)
                if belief is None:
                    logger.debug("No one-step-ahead belief for '%s'", name)
                    continue
                futures[name] = belief
            rolled = {**priors, **futures}
            rolled.pop(to_solve, None)
            logger.info("Rolled %d temporal variable(s) forward after solving '%s'", len(futures), to_solve)
            return MappingProxyType(rolled)

        return Iteration(value, Network(self._nodes, self._future_nodes, self._cases, Deferred(roll_forward)))

    def __repr__(self) -> str:
        return (
            f"Network(nodes={list(self._nodes)}, future_nodes={list(self._future_nodes)}, "
            f"priors={'materialized' if self._priors.evaluated else 'deferred'})"
        )


# ------------------------------
# Builder
# ------------------------------

def _as_belief(value: BeliefLike) -> Belief:
    return value if isinstance(value, Belief) else flip(float(value))


def _as_table(table: Union[ConditionalTable, Mapping[Any, BeliefLike]], arity: int) -> ConditionalTable:
    if isinstance(table, ConditionalTable):
        return table
    return ConditionalTable({key: _as_belief(row) for key, row in table.items()}, arity=arity)


class DescriptionBuilder:
    """Accumulates relation declarations for one time slice.

    Probabilities given as plain floats are read as `flip(p)`.
    """

    def __init__(self) -> None:
        self._relations: Dict[str, List[Relation]] = {}
        self._frozen = False

    def _add(self, name: str, relation: Relation) -> "DescriptionBuilder":
        if self._frozen:
            raise RuntimeError("The network has already been built; declarations are closed")
        self._relations.setdefault(name, []).append(relation)
        return self

    def prior(self, name: str, belief: BeliefLike) -> "DescriptionBuilder":
        return self._add(name, Prior(_as_belief(belief)))

    def depends_on(self, child: str, parent: str, table) -> "DescriptionBuilder":
        return self._add(child, DependsOn(parent, _as_table(table, 1)))

    def depends_on_pair(self, child: str, parents: Tuple[str, str], table) -> "DescriptionBuilder":
        first, second = parents
        return self._add(child, DependsOnPair(first, second, _as_table(table, 2)))

    def feeds_into(self, parent: str, child: str, table) -> "DescriptionBuilder":
        return self._add(parent, FeedsInto(child, _as_table(table, 1)))

    def description(self) -> Dict[str, Tuple[Relation, ...]]:
        return {name: tuple(relations) for name, relations in self._relations.items()}

    def freeze(self) -> Dict[str, Tuple[Relation, ...]]:
        self._frozen = True
        return self.description()


class NetworkBuilder(DescriptionBuilder):
    """Construction-phase object, frozen into a `Network` when the block exits.

        with NetworkBuilder() as net:
            net.prior("rain", 0.3)
            net.depends_on("umbrella", "rain", {True: 0.9, False: 0.2})
            net.future.depends_on("yesterday", "rain", {True: 1.0, False: 0.0})
        snapshot = net.network
    """

    def __init__(self) -> None:
        super().__init__()
        self.future = DescriptionBuilder()
        self._network: Optional[Network] = None

    @property
    def network(self) -> Network:
        if self._network is None:
            raise RuntimeError("The network is only available after the builder block exits")
        return self._network

    def __enter__(self) -> "NetworkBuilder":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self._network = Network.from_descriptions(self.freeze(), self.future.freeze())
        return False
