"""
YAML network descriptions.

A network file has a `present:` section and an optional `future:` section,
each mapping variable names to their declarations:

    present:
      burglar:
        prior: 0.001              # scalar p means flip(p)
      alarm:
        given: [burglar, earthquake]
        table:                    # two parents: [first, second, belief]
          - [true, true, 0.95]
          - [true, false, 0.94]
          - [false, true, 0.29]
          - [false, false, 0.001]
      john:
        given: alarm
        table: {true: 0.9, false: 0.05}
      weather:
        prior: {sunny: 0.6, rainy: 0.4}   # explicit distribution
    future:
      yesterday:
        given: rain
        table: {true: 1.0, false: 0.0}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

import yaml

from .belief import Belief, ConditionalTable, flip
from .network import Network
from .relations import DependsOn, DependsOnPair, Prior, Relation

_VARIABLE_KEYS = {"prior", "given", "table"}


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if data is not None else {}


def parse_belief(spec: Any, where: str = "belief") -> Belief:
    """A scalar probability (flip) or a mapping outcome -> probability."""
    if isinstance(spec, Belief):
        return spec
    if isinstance(spec, Mapping):
        return Belief(spec)
    if isinstance(spec, (int, float)) and not isinstance(spec, bool):
        return flip(float(spec))
    raise ValueError(f"Invalid {where}: expected a probability or an outcome mapping, got {spec!r}")


def _parse_table(name: str, parents: List[str], spec: Any) -> ConditionalTable:
    if len(parents) == 1:
        if not isinstance(spec, Mapping):
            raise ValueError(f"Table of '{name}' must map values of '{parents[0]}' to beliefs")
        rows = {key: parse_belief(row, f"row {key!r} of '{name}'") for key, row in spec.items()}
        return ConditionalTable(rows, arity=1)

    if not isinstance(spec, list):
        raise ValueError(f"Table of '{name}' must be a list of [{parents[0]}, {parents[1]}, belief] rows")
    rows = {}
    for entry in spec:
        if not isinstance(entry, list) or len(entry) != 3:
            raise ValueError(f"Invalid row in table of '{name}': {entry!r}")
        first, second, row = entry
        rows[(first, second)] = parse_belief(row, f"row {(first, second)!r} of '{name}'")
    return ConditionalTable(rows, arity=2)


def parse_variable(name: str, spec: Mapping[str, Any]) -> Tuple[Relation, ...]:
    if not isinstance(spec, Mapping):
        raise ValueError(f"Declaration of '{name}' must be a mapping, got {spec!r}")
    unknown = set(spec) - _VARIABLE_KEYS
    if unknown:
        raise ValueError(f"Unknown key(s) {sorted(unknown)} for '{name}'; expected {sorted(_VARIABLE_KEYS)}")
    if ("given" in spec) != ("table" in spec):
        raise ValueError(f"'{name}' needs both 'given' and 'table' to declare parents")

    relations: List[Relation] = []
    if "prior" in spec:
        relations.append(Prior(parse_belief(spec["prior"], f"prior of '{name}'")))
    if "given" in spec:
        given = spec["given"]
        parents = [given] if isinstance(given, str) else list(given)
        if len(parents) not in (1, 2):
            raise ValueError(f"'{name}' may depend on one or two parents, got {parents}")
        table = _parse_table(name, parents, spec["table"])
        if len(parents) == 1:
            relations.append(DependsOn(parents[0], table))
        else:
            relations.append(DependsOnPair(parents[0], parents[1], table))
    return tuple(relations)


def description_from_dict(section: Mapping[str, Any]) -> Dict[str, Tuple[Relation, ...]]:
    return {str(name): parse_variable(str(name), spec or {}) for name, spec in (section or {}).items()}


def network_from_dict(data: Mapping[str, Any]) -> Network:
    if "present" not in data:
        raise ValueError("Network description needs a 'present' section")
    unknown = set(data) - {"present", "future"}
    if unknown:
        raise ValueError(f"Unknown section(s) {sorted(unknown)}; expected 'present' and 'future'")
    return Network.from_descriptions(
        description_from_dict(data["present"]),
        description_from_dict(data.get("future") or {}),
    )


def load_network(path: Union[str, Path]) -> Network:
    return network_from_dict(load_yaml(path))
