"""
Forward/backward belief computation over a node mapping.

The solver walks the graph without a topological sort: `deduce` resolves
a variable's forward belief by recursively resolving its parents, and
`induce` collects posterior updates by recursing into the variables a
node feeds into. Already-resolved beliefs live in a *session*, a mapping
from variable name to belief that is threaded through the recursion and
never modified in place; every update returns a new mapping.

Preconditions:
- forward dependencies are acyclic (recursion depth is bounded by the
  longest dependency chain)
- priors cover every variable without a forward rule

Absence is not an error: a variable that cannot be resolved is simply
left out of the session.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Mapping, Optional

from .belief import Belief
from .node import Node

logger = logging.getLogger(__name__)

Session = Mapping[str, Belief]


class Solver:
    """Solver bound to one node mapping and one prior table.

    Args:
        nodes: variable name -> Node
        priors: variable name -> prior Belief, seeded into every solve
    """

    def __init__(self, nodes: Mapping[str, Node], priors: Mapping[str, Belief]):
        self.nodes = nodes
        self.priors = priors

    def deduce(self, name: str, session: Session) -> Session:
        """Return `session` extended with the forward belief of `name` (and of
        any ancestor that had to be resolved on the way)."""
        if name in session:
            return session
        node = self.nodes.get(name)
        if node is None or node.forward is None:
            return session

        current = session

        def resolve(parent: str) -> Optional[Belief]:
            nonlocal current
            if parent not in current:
                current = self.deduce(parent, current)
            return current.get(parent)

        value = node.forward(resolve)
        if value is None:
            logger.debug("No forward belief for '%s'", name)
            return current
        return {**current, name: value}

    def induce(self, name: str, session: Session, visited: FrozenSet[str]) -> Dict[str, Belief]:
        """Posterior beliefs of `name` and of everything below it that carries
        a backward rule. Only the posteriors are returned, not the session."""
        if name in visited:
            return {}
        node = self.nodes.get(name)
        if node is None or node.backward is None:
            return {}

        children: Dict[str, Belief] = {}
        for end in node.backward.ends():
            children = {**children, **self.induce(end, session, visited | {name})}

        current = session

        def resolve(other: str) -> Optional[Belief]:
            nonlocal current
            if other in children:
                return children[other]
            if other not in current:
                current = self.deduce(other, current)
            return current.get(other)

        value = node.backward(resolve)
        if value is None:
            logger.debug("No posterior for '%s'", name)
            return children
        return {**children, name: value}

    def __call__(self, to_solve: str, evidences: Session) -> Dict[str, Belief]:
        """Solve the whole network under `evidences`.

        Evidence overrides the prior of the same variable. Variables are
        visited in node order: each one is deduced, then induced, and its
        posteriors are folded back into the running session, so later
        forward computations read them. This is how evidence reaches
        variables that only share an ancestor with it.

        A posterior is computed at most once per solve: variables already
        induced are passed as `visited`, so no downstream evidence is
        multiplied into the same belief twice.
        """
        session: Session = {**self.priors, **evidences}
        settled: FrozenSet[str] = frozenset()
        for name in self.nodes:
            session = self.deduce(name, session)
            posteriors = self.induce(name, session, settled)
            session = {**session, **posteriors}
            settled = settled | frozenset(posteriors)
        logger.debug("Solved '%s': %d belief(s), %d posterior(s)", to_solve, len(session), len(settled))
        return dict(session)
