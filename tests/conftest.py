import matplotlib
import pytest

from beliefnet import NetworkBuilder

matplotlib.use("Agg")

ALARM_TABLE = {
    (True, True): 0.95,
    (True, False): 0.94,
    (False, True): 0.29,
    (False, False): 0.001,
}


def build_alarm(with_calls: bool = True):
    with NetworkBuilder() as net:
        net.prior("burglar", 0.001)
        net.prior("earthquake", 0.002)
        net.depends_on_pair("alarm", ("burglar", "earthquake"), ALARM_TABLE)
        if with_calls:
            net.depends_on("john", "alarm", {True: 0.9, False: 0.05})
            net.depends_on("mary", "alarm", {True: 0.7, False: 0.01})
    return net.network


@pytest.fixture
def collider():
    """burglar -> alarm <- earthquake"""
    return build_alarm(with_calls=False)


@pytest.fixture
def alarm():
    """Collider extended with john and mary calling on alarm."""
    return build_alarm()


@pytest.fixture
def chain():
    with NetworkBuilder() as net:
        net.prior("A", 0.9)
        net.depends_on("B", "A", {True: 0.9, False: 0.2})
    return net.network


@pytest.fixture
def weather():
    """Rain persists from one step to the next; an umbrella is seen when it rains."""
    with NetworkBuilder() as net:
        net.prior("prev", 0.5)
        net.depends_on("rain", "prev", {True: 0.7, False: 0.3})
        net.depends_on("umbrella", "rain", {True: 0.9, False: 0.2})
        net.future.depends_on("prev", "rain", {True: 1.0, False: 0.0})
    return net.network
