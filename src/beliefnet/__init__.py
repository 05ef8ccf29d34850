"""
beliefnet: forward/backward belief inference for discrete (dynamic) Bayesian networks.

Main entry points:
    - NetworkBuilder: declare variables, priors and conditional tables
    - Network: immutable snapshot; `solve()` / `evidences(...).solve()`
    - Belief, ConditionalTable, flip, sure, uniform: belief algebra
"""

from .belief import Belief, ConditionalTable, flip, sure, uniform
from .network import EvidenceQuery, Iteration, Network, NetworkBuilder
from .relations import DependsOn, DependsOnPair, FeedsInto, Prior
from .solver import Solver

__all__ = [
    "Belief",
    "ConditionalTable",
    "flip",
    "sure",
    "uniform",
    "Network",
    "NetworkBuilder",
    "Iteration",
    "EvidenceQuery",
    "Solver",
    "Prior",
    "DependsOn",
    "DependsOnPair",
    "FeedsInto",
]

__version__ = "0.1.0"
