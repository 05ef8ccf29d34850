import networkx as nx
import pytest

from beliefnet.generation import ArityStrategy, generate_network_from_dag
from beliefnet.sweep import compare_with_exact, generate_queries


@pytest.fixture
def tree_dag():
    return nx.DiGraph([("A", "B"), ("B", "C"), ("B", "D")])


def test_generate_network_shapes(tree_dag):
    network, meta = generate_network_from_dag(
        tree_dag, {"type": "range", "min": 2, "max": 4}, dirichlet_alpha=0.5, seed=7,
    )
    assert set(network.nodes) == {"A", "B", "C", "D"}
    assert set(network.priors) == {"A"}
    for name, card in meta["node_cardinalities"].items():
        assert network.cases[name] == tuple(f"s{i}" for i in range(card))
    assert network.nodes["C"].parents == ("B",)
    assert meta["seed"] == 7


def test_generation_is_seeded(tree_dag):
    first, _ = generate_network_from_dag(tree_dag, {"type": "fixed", "fixed": 3}, seed=1)
    second, _ = generate_network_from_dag(tree_dag, {"type": "fixed", "fixed": 3}, seed=1)
    assert first.priors["A"] == second.priors["A"]
    assert first.nodes["D"].forward.table == second.nodes["D"].forward.table


def test_two_parent_nodes():
    dag = nx.DiGraph([("A", "C"), ("B", "C")])
    network, _ = generate_network_from_dag(dag, ArityStrategy(type="fixed", fixed=2), seed=3)
    assert network.nodes["C"].parents == ("A", "B")
    assert network.solve("C").value is not None


def test_deterministic_rows():
    dag = nx.DiGraph([("A", "B")])
    network, _ = generate_network_from_dag(dag, {"type": "fixed", "fixed": 2}, determinism_fraction=1.0, seed=5)
    for row in network.nodes["B"].forward.table.rows.values():
        assert sorted(row.probabilities.tolist()) == [0.0, 1.0]


def test_generation_rejects_bad_input():
    with pytest.raises(ValueError, match="DAG"):
        generate_network_from_dag(nx.DiGraph([("A", "B"), ("B", "A")]), {"type": "fixed", "fixed": 2})
    crowded = nx.DiGraph([("A", "D"), ("B", "D"), ("C", "D")])
    with pytest.raises(ValueError, match="two parents"):
        generate_network_from_dag(crowded, {"type": "fixed", "fixed": 2})
    with pytest.raises(ValueError):
        generate_network_from_dag(nx.DiGraph([("A", "B")]), {"type": "fixed", "fixed": 1})
    with pytest.raises(ValueError):
        generate_network_from_dag(nx.DiGraph([("A", "B")]), {"type": "weird"})


def test_generate_queries_downstream(tree_dag):
    network, _ = generate_network_from_dag(tree_dag, {"type": "fixed", "fixed": 2}, seed=11)
    queries = generate_queries(network, num_queries=25, seed=2)
    assert len(queries) == 25
    descendants = {"A": {"B", "C", "D"}, "B": {"C", "D"}, "C": set(), "D": set()}
    for q in queries:
        assert q.value in network.cases[q.variable]
        assert set(q.evidence) <= descendants[q.variable]
        assert q.meta["num_evidence"] == len(q.evidence)


def test_sweep_matches_exact_on_trees(tree_dag):
    network, _ = generate_network_from_dag(tree_dag, {"type": "range", "min": 2, "max": 3}, seed=4)
    queries = generate_queries(network, num_queries=15, seed=9)
    frame = compare_with_exact(network, queries)
    assert list(frame.columns) == ["query", "variable", "value", "num_evidence", "downstream_only", "engine", "exact", "abs_error"]
    assert len(frame) == 15
    assert frame["abs_error"].max() < 1e-6


def test_sweep_with_evidence_anywhere_matches_exact_on_trees(tree_dag):
    network, _ = generate_network_from_dag(tree_dag, {"type": "range", "min": 2, "max": 3}, seed=4)
    queries = generate_queries(network, num_queries=20, evidence_counts=(1, 2), downstream_only=False, seed=11)
    descendants = {"A": {"B", "C", "D"}, "B": {"C", "D"}, "C": set(), "D": set()}
    assert any(not set(q.evidence) <= descendants[q.variable] for q in queries)
    frame = compare_with_exact(network, queries)
    assert not frame["downstream_only"].any()
    assert frame["abs_error"].max() < 1e-6
