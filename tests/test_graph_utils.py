import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import networkx as nx  # noqa: E402
import pytest  # noqa: E402

from beliefnet.belief import flip  # noqa: E402
from beliefnet.cpd_utils import belief_to_ascii_table, table_to_ascii  # noqa: E402
from beliefnet.graph_utils import (  # noqa: E402
    draw_network,
    hierarchical_layers,
    markov_blanket,
    structure_summary,
    to_digraph,
)


def test_digraph_and_layers(alarm):
    G = to_digraph(alarm)
    assert G.number_of_edges() == 4
    layers = hierarchical_layers(G)
    assert layers == {"burglar": 0, "earthquake": 0, "alarm": 1, "john": 2, "mary": 2}


def test_layers_need_a_dag():
    with pytest.raises(ValueError):
        hierarchical_layers(nx.DiGraph([("a", "b"), ("b", "a")]))


def test_future_graph_replaces_present_nodes(weather):
    present = to_digraph(weather)
    rolled = to_digraph(weather, include_future=True)
    assert ("prev", "rain") in present.edges()
    assert ("rain", "prev") in rolled.edges()
    assert ("prev", "rain") not in rolled.edges()


def test_markov_blanket(alarm):
    G = to_digraph(alarm)
    assert markov_blanket(G, "burglar") == {"alarm", "earthquake"}
    assert markov_blanket(G, "alarm") == {"burglar", "earthquake", "john", "mary"}
    assert markov_blanket(G, "john") == {"alarm"}
    with pytest.raises(ValueError):
        markov_blanket(G, "dog")


def test_structure_summary(alarm, chain):
    summary = structure_summary(alarm)
    assert summary["variables"] == 5
    assert summary["edges"] == 4
    # (2 + 2 + 4 + 1 + 1) / 5
    assert summary["avg_markov_blanket"] == pytest.approx(2.0)
    assert summary["treewidth"] >= 1
    assert structure_summary(chain)["treewidth"] == 1


def test_draw_network_marks_evidence_and_target(alarm):
    query = alarm.evidences(john=True)
    beliefs = {name: query.solve(name).value for name in alarm.nodes}
    info = draw_network(alarm, beliefs=beliefs, evidence=["john"], target="burglar")
    try:
        assert set(info["positions"]) == set(alarm.nodes)
        assert info["positions"]["burglar"][1] == 0
        assert info["positions"]["john"][1] == -2
        assert info["colors"]["burglar"] == "orange"
        assert info["colors"]["john"] == "lightgrey"
        assert info["colors"]["alarm"] == "lightblue"
        assert info["labels"]["john"] == "john\nP(True)=1.000"
        assert info["labels"]["burglar"].startswith("burglar\nP(True)=0.0")
    finally:
        plt.close(info["figure"])


def test_draw_network_without_beliefs(alarm):
    info = draw_network(alarm)
    try:
        assert info["labels"] == {name: name for name in alarm.nodes}
    finally:
        plt.close(info["figure"])


def test_belief_table():
    text = belief_to_ascii_table("rain", flip(0.25))
    assert "| rain(True)  | 0.2500      |" in text
    assert "| rain(False) | 0.7500      |" in text


def test_conditional_table_rendering(alarm):
    table = alarm.nodes["alarm"].forward.table
    text = table_to_ascii("alarm", ["burglar", "earthquake"], table, digits=3)
    assert "burglar(True)" in text and "earthquake(False)" in text
    assert "0.950" in text and "0.001" in text
    with pytest.raises(ValueError):
        table_to_ascii("alarm", ["burglar"], table)
