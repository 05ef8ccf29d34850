import pytest

from beliefnet import NetworkBuilder
from beliefnet.deferred import Deferred
from beliefnet.graph_utils import temporal_variables


def test_observation_updates_state(weather):
    result = weather.evidences(umbrella=True).solve("rain")
    # 0.5 * 0.9 / (0.5 * 0.9 + 0.5 * 0.2)
    assert result.value.chance(True) == pytest.approx(0.81818, abs=1e-5)


def test_next_snapshot_carries_rolled_belief(weather):
    step = weather.evidences(umbrella=True).solve("rain")
    rolled = step.next
    assert rolled.priors["prev"].chance(True) == pytest.approx(0.81818, abs=1e-5)
    assert "rain" not in rolled.priors

    second = rolled.solve("rain")
    assert second.value.chance(True) == pytest.approx(0.627273, abs=1e-5)


def test_stepping_without_evidence_converges(weather):
    network = weather.evidences(umbrella=True).solve("rain").next
    values = []
    for _ in range(30):
        step = network.solve("rain")
        values.append(step.value.chance(True))
        network = step.next
    # stationary point of p' = 0.3 + 0.4 p
    assert values[-1] == pytest.approx(0.5, abs=1e-6)


def test_original_snapshot_is_untouched(weather):
    weather.evidences(umbrella=True).solve("rain").next.priors
    assert weather.priors["prev"].chance(True) == pytest.approx(0.5)
    assert weather.solve("rain").value.chance(True) == pytest.approx(0.5)


def test_roll_forward_is_lazy(weather):
    rolled = weather.evidences(umbrella=True).solve("rain").next
    assert "deferred" in repr(rolled)
    rolled.priors
    assert "materialized" in repr(rolled)


def test_temporal_variables(weather):
    assert temporal_variables(weather) == ["prev"]
    assert set(weather.future_nodes) == {"prev", "rain"}


def test_future_self_dependency_is_rejected():
    with pytest.raises(ValueError, match="cycle"):
        with NetworkBuilder() as net:
            net.prior("rain", 0.5)
            net.future.depends_on("rain", "rain", {True: 0.7, False: 0.3})


def test_network_without_future_keeps_priors(collider):
    rolled = collider.solve("alarm").next
    assert dict(rolled.priors) == dict(collider.priors)


def test_solved_prior_is_dropped(collider):
    rolled = collider.solve("burglar").next
    assert "burglar" not in rolled.priors
    assert "earthquake" in rolled.priors


def test_deferred_runs_once():
    calls = []

    def produce():
        calls.append(1)
        return {"x": 1}

    value = Deferred(produce)
    assert not value.evaluated
    assert value.get() is value.get()
    assert calls == [1]
    assert value.evaluated
    assert "x" in repr(value)


def test_deferred_shared_between_threads():
    from concurrent.futures import ThreadPoolExecutor

    calls = []
    value = Deferred(lambda: calls.append(1) or len(calls))
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: value.get(), range(32)))
    assert results == [1] * 32
    assert calls == [1]
