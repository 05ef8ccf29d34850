"""
Per-variable rules of a network.

A `Node` bundles an optional forward rule (how the variable's belief
follows from its parents) and an optional backward rule (how downstream
beliefs update it). Rules receive a `resolve(name)` callback that returns
the current belief of another variable, or None when it cannot be
determined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .belief import Belief, ConditionalTable
from .relations import FeedsInto

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Optional[Belief]]


@dataclass(frozen=True)
class ForwardRule:
    parents: Tuple[str, ...]
    table: ConditionalTable

    def __call__(self, resolve: Resolver) -> Optional[Belief]:
        return self.table.mix([resolve(p) for p in self.parents])


@dataclass(frozen=True)
class BackwardRule:
    """Posterior update of `name` from the variables it feeds into.

    Each link contributes a likelihood factor; the factors are multiplied
    into the variable's current belief and the result is renormalized.
    Links whose child or partner cannot be resolved are skipped.
    """

    name: str
    links: Tuple[FeedsInto, ...]

    def ends(self) -> Tuple[str, ...]:
        """Downstream variables this rule reads, without duplicates."""
        return tuple(dict.fromkeys(link.child for link in self.links))

    def __call__(self, resolve: Resolver) -> Optional[Belief]:
        own = resolve(self.name)
        if own is None:
            return None
        factor = np.ones(len(own))
        for link in self.links:
            child = resolve(link.child)
            if link.partner is None:
                parents = [own]
            else:
                partner = resolve(link.partner)
                parents = [own, partner] if link.position == 0 else [partner, own]
            weights = link.table.likelihood(link.position, child, parents)
            if weights is None:
                logger.debug("Skipping link %s -> %s: likelihood not applicable", self.name, link.child)
                continue
            lookup = dict(zip(link.table.parent_values(link.position), weights))
            factor = factor * np.array([lookup.get(o, 0.0) for o in own.outcomes])
        posterior = own.probabilities * factor
        if posterior.sum() <= 0:
            logger.debug("Downstream beliefs of '%s' are incompatible with its current belief", self.name)
            return None
        return Belief(zip(own.outcomes, posterior))


@dataclass(frozen=True)
class Node:
    name: str
    forward: Optional[ForwardRule] = None
    backward: Optional[BackwardRule] = None

    @property
    def parents(self) -> Tuple[str, ...]:
        return self.forward.parents if self.forward is not None else ()

    @property
    def children(self) -> Tuple[str, ...]:
        return self.backward.ends() if self.backward is not None else ()
