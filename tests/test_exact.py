import pytest

from beliefnet import NetworkBuilder, flip
from beliefnet.exact import exact_query, to_pgmpy
from beliefnet.inference import format_probability_query, query_probability


@pytest.mark.parametrize("variable, evidence", [
    ("burglar", {}),
    ("alarm", {}),
    ("burglar", {"john": True}),
    ("burglar", {"john": True, "mary": True}),
    ("burglar", {"john": True, "mary": False}),
    ("alarm", {"mary": True}),
    ("john", {"mary": True}),
    ("earthquake", {"alarm": True, "burglar": False}),
])
def test_solver_matches_variable_elimination(alarm, variable, evidence):
    engine = alarm.evidences(evidence).solve(variable).value
    exact = exact_query(alarm, variable, evidence)
    assert engine.chance(True) == pytest.approx(exact.chance(True), abs=1e-6)


def test_to_pgmpy_structure(alarm):
    model = to_pgmpy(alarm)
    assert set(model.nodes()) == set(alarm.nodes)
    assert set(model.edges()) == {
        ("burglar", "alarm"), ("earthquake", "alarm"), ("alarm", "john"), ("alarm", "mary"),
    }
    assert model.get_cpds("alarm").variable_card == 2


def test_exact_maps_states_back(alarm):
    belief = exact_query(alarm, "burglar", {"john": True, "mary": True})
    assert belief.outcomes == (True, False)
    assert belief.chance(True) == pytest.approx(0.284, abs=1e-3)


def test_exact_uses_rolled_priors(weather):
    rolled = weather.evidences(umbrella=True).solve("rain").next
    assert exact_query(rolled, "rain").chance(True) == pytest.approx(0.627273, abs=1e-5)


def test_exact_rejects_soft_evidence(alarm):
    with pytest.raises(ValueError, match="hard evidence"):
        exact_query(alarm, "burglar", {"john": flip(0.8)})
    with pytest.raises(ValueError, match="outside its domain"):
        exact_query(alarm, "burglar", {"john": "maybe"})


def test_to_pgmpy_needs_every_root_prior():
    with NetworkBuilder() as net:
        net.depends_on("child", "orphan", {True: 0.5, False: 0.5})
    with pytest.raises(ValueError, match="neither a prior nor a parent table"):
        to_pgmpy(net.network)


def test_query_helpers(alarm):
    assert format_probability_query("burglar", True) == "P(burglar=True)"
    assert format_probability_query("burglar", True, {"john": True, "mary": False}) == \
        "P(burglar=True | john=True, mary=False)"
    assert query_probability(alarm, "burglar", True, {"john": True, "mary": True}) == \
        pytest.approx(0.284, abs=1e-3)


def test_query_probability_without_belief():
    with NetworkBuilder() as net:
        net.depends_on("child", "orphan", {True: 0.5, False: 0.5})
    with pytest.raises(ValueError, match="No belief"):
        query_probability(net.network, "child", True)


def test_sibling_evidence_matches_variable_elimination():
    with NetworkBuilder() as net:
        net.prior("a", 0.5)
        net.depends_on("b", "a", {True: 0.9, False: 0.1})
        net.depends_on("c", "a", {True: 0.9, False: 0.1})
    network = net.network
    engine = network.evidences(c=True).solve("b").value
    exact = exact_query(network, "b", {"c": True})
    assert exact.chance(True) == pytest.approx(0.82)
    assert engine.chance(True) == pytest.approx(exact.chance(True), abs=1e-6)
