"""
Relation descriptors used in declarative network descriptions.

A network description maps each variable name to the relations declared
for it. The descriptors form a closed set of variants; consumers
discriminate them with `isinstance` and treat anything else as an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

from .belief import Belief, ConditionalTable


@dataclass(frozen=True)
class Prior:
    """Root belief of the variable."""
    belief: Belief


@dataclass(frozen=True)
class DependsOn:
    """The variable depends on one parent through `table`."""
    parent: str
    table: ConditionalTable

    def __post_init__(self) -> None:
        if self.table.arity != 1:
            raise ValueError(f"DependsOn('{self.parent}') needs a one-parent table")


@dataclass(frozen=True)
class DependsOnPair:
    """The variable depends on two parents; table keys are (first, second) value tuples."""
    first: str
    second: str
    table: ConditionalTable

    def __post_init__(self) -> None:
        if self.table.arity != 2:
            raise ValueError(f"DependsOnPair('{self.first}', '{self.second}') needs a two-parent table")
        if self.first == self.second:
            raise ValueError(f"A variable cannot depend twice on '{self.first}'")


@dataclass(frozen=True)
class FeedsInto:
    """The variable is a parent of `child`.

    For two-parent tables `partner` names the other parent and `position`
    is this variable's index in the table keys.
    """
    child: str
    table: ConditionalTable
    partner: Optional[str] = None
    position: int = 0

    def __post_init__(self) -> None:
        if (self.partner is None) != (self.table.arity == 1):
            raise ValueError(f"FeedsInto('{self.child}') partner does not match table arity {self.table.arity}")
        if self.position not in range(self.table.arity):
            raise ValueError(f"FeedsInto('{self.child}') position {self.position} out of range")


Relation = Union[Prior, DependsOn, DependsOnPair, FeedsInto]

Description = Mapping[str, Iterable[Relation]]
