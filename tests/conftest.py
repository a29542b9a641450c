import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def charsets():
    return ['', 'a', 'b', 'c', '1', '2']
