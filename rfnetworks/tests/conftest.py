import numpy as np
import pytest

from rfnetworks import NetworkParameter, NetworkParametersCollection, NetworkParametersMatrix


def matched_line(loss_db: float, phase_deg: float = 0.0) -> NetworkParametersMatrix:
    """
    Reflectionless 2-port with `loss_db` insertion loss.
    """
    s21 = NetworkParameter.from_polar_db_degree(-loss_db, phase_deg)
    return NetworkParametersMatrix([[0, s21], [s21, 0]])


def random_two_port(rng: np.random.Generator) -> NetworkParametersMatrix:
    s = (rng.uniform(0.05, 0.5, (2, 2)) * np.exp(1j * rng.uniform(-np.pi, np.pi, (2, 2))))
    # strong transmission keeps the transfer matrix well conditioned
    s[1, 0] = rng.uniform(0.6, 0.95) * np.exp(1j * rng.uniform(-np.pi, np.pi))
    s[0, 1] = rng.uniform(0.6, 0.95) * np.exp(1j * rng.uniform(-np.pi, np.pi))
    return NetworkParametersMatrix(s)


@pytest.fixture()
def make_line():
    return matched_line


@pytest.fixture()
def make_random_two_port():
    return random_two_port


@pytest.fixture()
def line_3db() -> NetworkParametersMatrix:
    return matched_line(3)


@pytest.fixture()
def line_5db() -> NetworkParametersMatrix:
    return matched_line(5)


@pytest.fixture()
def collection() -> NetworkParametersCollection:
    c = NetworkParametersCollection(2)
    for f, loss in ((1e9, 1), (2e9, 2), (4e9, 4)):
        c[f] = matched_line(loss)
    return c
