"""
Query helpers for discrete networks.

This module provides small utilities around `Network.evidences(...).solve(...)`
for asking for a single probability.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .network import Network


def format_probability_query(variable: str, value: Any, evidence: Optional[Mapping[str, Any]] = None) -> str:
    """Generate formatted query string like P(burglar=True | john=True, mary=False)"""
    if evidence:
        evidence_str = ', '.join([f"{k}={v}" for k, v in evidence.items()])
        return f"P({variable}={value} | {evidence_str})"
    return f"P({variable}={value})"


def query_probability(network: Network, variable: str, value: Any, evidence: Optional[Mapping[str, Any]] = None) -> float:
    """Solve `variable` under `evidence` and return the probability of `value`.

    Raises:
        ValueError: if no belief can be derived for `variable`
    """
    result = network.evidences(dict(evidence or {})).solve(variable)
    if result.value is None:
        raise ValueError(f"No belief could be derived for {format_probability_query(variable, value, evidence)}")
    return result.value.chance(value)
