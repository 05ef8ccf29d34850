"""
Belief algebra for discrete random variables.

A `Belief` is an immutable probability distribution over a variable's
outcomes. A `ConditionalTable` maps one or two parent outcome values to
the `Belief` of the dependent variable and supplies the two operations the
solver needs:

- `mix()`: forward combination, P(child) = sum_k P(parents = k) * row_k
- `likelihood()`: diagnostic factor for one parent given a (possibly
  re-derived) belief about the child, following Jeffrey's rule:
  L(x) = sum_c P'(c) * P(c | x) / P(c)

Both return None when they cannot be applied (an absent parent belief, or
mass on a parent value the table has no row for).

Example:
    >>> rain = flip(0.2)
    >>> wet = ConditionalTable({True: flip(0.9), False: flip(0.1)})
    >>> round(wet.mix([rain]).chance(True), 4)
    0.26
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np


Outcome = Hashable


class Belief:
    """Immutable distribution over an ordered set of outcomes."""

    __slots__ = ("_outcomes", "_probabilities", "_index")

    def __init__(self, chances: Union[Mapping[Outcome, float], Iterable[Tuple[Outcome, float]]]):
        pairs = list(chances.items()) if isinstance(chances, Mapping) else list(chances)
        if not pairs:
            raise ValueError("A belief needs at least one outcome")
        outcomes = tuple(o for o, _ in pairs)
        if len(set(outcomes)) != len(outcomes):
            raise ValueError(f"Duplicate outcomes in belief: {outcomes}")
        probabilities = np.asarray([float(p) for _, p in pairs], dtype=float)
        if np.any(probabilities < 0) or not np.all(np.isfinite(probabilities)):
            raise ValueError(f"Probabilities must be finite and non-negative: {probabilities.tolist()}")
        total = probabilities.sum()
        if total <= 0:
            raise ValueError("Probabilities must have a positive total")
        probabilities = probabilities / total
        probabilities.flags.writeable = False
        self._outcomes = outcomes
        self._probabilities = probabilities
        self._index = {o: i for i, o in enumerate(outcomes)}

    @property
    def outcomes(self) -> Tuple[Outcome, ...]:
        return self._outcomes

    @property
    def probabilities(self) -> np.ndarray:
        return self._probabilities

    def chance(self, outcome: Outcome) -> float:
        """Probability mass of `outcome` (0.0 when it is not part of this belief)."""
        i = self._index.get(outcome)
        return 0.0 if i is None else float(self._probabilities[i])

    def items(self) -> Iterator[Tuple[Outcome, float]]:
        return zip(self._outcomes, (float(p) for p in self._probabilities))

    def as_dict(self) -> Dict[Outcome, float]:
        return dict(self.items())

    def aligned(self, order: Sequence[Outcome]) -> np.ndarray:
        """Probabilities laid out in `order`; outcomes missing from this belief get 0."""
        return np.array([self.chance(o) for o in order], dtype=float)

    def support(self) -> Tuple[Outcome, ...]:
        return tuple(o for o, p in zip(self._outcomes, self._probabilities) if p > 0)

    def __len__(self) -> int:
        return len(self._outcomes)

    def __contains__(self, outcome: object) -> bool:
        return outcome in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Belief):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __hash__(self) -> int:
        return hash(frozenset(self.items()))

    def __repr__(self) -> str:
        body = ", ".join(f"{o!r}: {p:.6g}" for o, p in self.items())
        return f"Belief({{{body}}})"


def flip(p: float) -> Belief:
    """Bernoulli belief over (True, False)."""
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"flip() needs a probability in [0, 1], got {p}")
    return Belief({True: p, False: 1.0 - p})


def sure(value: Outcome, cases: Iterable[Outcome]) -> Belief:
    """Deterministic belief: all mass on `value`, scoped to the domain `cases`."""
    domain = tuple(cases)
    if value not in domain:
        raise ValueError(f"Outcome {value!r} is not in the domain {domain}")
    return Belief({c: 1.0 if c == value else 0.0 for c in domain})


def uniform(cases: Iterable[Outcome]) -> Belief:
    domain = tuple(cases)
    return Belief({c: 1.0 for c in domain})


def _ordered_union(groups: Iterable[Iterable[Outcome]]) -> Tuple[Outcome, ...]:
    seen: Dict[Outcome, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return tuple(seen)


class ConditionalTable:
    """Conditional probability table keyed by one or two parent values.

    Args:
        rows: mapping parent key -> Belief of the dependent variable. For
            `arity=2` every key is a `(first_value, second_value)` tuple.
        arity: number of parents (1 or 2)
    """

    __slots__ = ("_rows", "_arity", "_domains", "_outcomes", "_matrix", "_defined")

    def __init__(self, rows: Mapping[Any, Belief], arity: int = 1):
        if arity not in (1, 2):
            raise ValueError(f"Only one- and two-parent tables are supported, got arity={arity}")
        if not rows:
            raise ValueError("A conditional table needs at least one row")
        for key, row in rows.items():
            if not isinstance(row, Belief):
                raise ValueError(f"Row {key!r} must be a Belief, got {type(row).__name__}")
            if arity == 2 and not (isinstance(key, tuple) and len(key) == 2):
                raise ValueError(f"Two-parent table keys must be (first, second) tuples, got {key!r}")

        self._rows: Dict[Any, Belief] = dict(rows)
        self._arity = arity
        keys: List[Tuple[Any, ...]] = [k if arity == 2 else (k,) for k in self._rows]
        self._domains = tuple(_ordered_union([[k[pos]] for k in keys]) for pos in range(arity))
        self._outcomes = _ordered_union(row.outcomes for row in self._rows.values())

        shape = tuple(len(d) for d in self._domains)
        matrix = np.zeros(shape + (len(self._outcomes),), dtype=float)
        defined = np.zeros(shape, dtype=bool)
        for key, row in zip(keys, self._rows.values()):
            idx = tuple(self._domains[pos].index(key[pos]) for pos in range(arity))
            matrix[idx] = row.aligned(self._outcomes)
            defined[idx] = True
        matrix.flags.writeable = False
        defined.flags.writeable = False
        self._matrix = matrix
        self._defined = defined

    @property
    def arity(self) -> int:
        return self._arity

    @property
    def rows(self) -> Mapping[Any, Belief]:
        return dict(self._rows)

    @property
    def outcomes(self) -> Tuple[Outcome, ...]:
        """Outcomes of the dependent variable, in first-seen order."""
        return self._outcomes

    def parent_values(self, position: int = 0) -> Tuple[Outcome, ...]:
        """Parent outcome values used as keys at `position`."""
        return self._domains[position]

    def _weights(self, position: int, belief: Belief) -> Optional[np.ndarray]:
        weights = belief.aligned(self._domains[position])
        # mass on a value without a row makes the table inapplicable
        if not np.isclose(weights.sum(), 1.0):
            return None
        return weights

    def mix(self, parent_beliefs: Sequence[Optional[Belief]]) -> Optional[Belief]:
        """Marginal belief of the dependent variable given its parents' beliefs."""
        if len(parent_beliefs) != self._arity:
            raise ValueError(f"Expected {self._arity} parent belief(s), got {len(parent_beliefs)}")
        if any(b is None for b in parent_beliefs):
            return None
        weights = [self._weights(pos, b) for pos, b in enumerate(parent_beliefs)]
        if any(w is None for w in weights):
            return None
        joint = weights[0] if self._arity == 1 else np.outer(weights[0], weights[1])
        if np.any((joint > 0) & ~self._defined):
            return None
        mixed = np.tensordot(joint, self._matrix, axes=self._arity)
        if mixed.sum() <= 0:
            return None
        return Belief(zip(self._outcomes, mixed))

    def _conditional(self, position: int, partner: Optional[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        """P(child | parent at `position`) with the partner parent averaged out."""
        if self._arity == 1:
            return self._matrix, self._defined
        if position == 0:
            cond = np.einsum("ijc,j->ic", self._matrix, partner)
            defined = ~np.any(~self._defined & (partner > 0)[None, :], axis=1)
        else:
            cond = np.einsum("ijc,i->jc", self._matrix, partner)
            defined = ~np.any(~self._defined & (partner > 0)[:, None], axis=0)
        return cond, defined

    def likelihood(
        self,
        position: int,
        child: Optional[Belief],
        parent_beliefs: Sequence[Optional[Belief]],
    ) -> Optional[np.ndarray]:
        """Diagnostic factor for the parent at `position`.

        Args:
            position: which parent the factor is for (0 or 1)
            child: current (possibly re-derived) belief about the dependent variable
            parent_beliefs: current beliefs of all parents, in table order

        Returns:
            Array aligned with `parent_values(position)`, or None when the
            table cannot be applied.
        """
        if len(parent_beliefs) != self._arity:
            raise ValueError(f"Expected {self._arity} parent belief(s), got {len(parent_beliefs)}")
        if child is None or any(b is None for b in parent_beliefs):
            return None
        own = self._weights(position, parent_beliefs[position])
        if own is None:
            return None
        partner = None
        if self._arity == 2:
            partner = self._weights(1 - position, parent_beliefs[1 - position])
            if partner is None:
                return None
        cond, defined = self._conditional(position, partner)
        if np.any((own > 0) & ~defined):
            return None
        marginal = own @ cond
        target = child.aligned(self._outcomes)
        ratio = np.divide(target, marginal, out=np.zeros_like(target), where=marginal > 0)
        return cond @ ratio

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConditionalTable):
            return NotImplemented
        return self._arity == other._arity and self._rows == other._rows

    def __hash__(self) -> int:
        return hash((self._arity, frozenset(self._rows.items())))

    def __repr__(self) -> str:
        return f"ConditionalTable({self._rows!r}, arity={self._arity})"
