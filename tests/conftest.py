"""
Test configuration and fixtures for hmmkit.

This file contains pytest configuration and shared fixtures
for testing the hmmkit library.
"""

import tempfile
from pathlib import Path

import numpy as np
import pytest

from hmmkit.config import reset_config
from hmmkit.hmm import Hmm, InputHmm
from hmmkit.observations import ObservationInteger, ObservationReal, InputObservationTuple
from hmmkit.opdf import OpdfInteger, OpdfGaussian


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def clean_config():
    """Restore the default configuration around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def integer_hmm():
    """Two-state model over the integers {0, 1}, each state favouring one value."""
    pi = [0.6, 0.4]
    A = [[0.7, 0.3],
         [0.4, 0.6]]
    opdfs = [OpdfInteger(probabilities=[0.9, 0.1]), OpdfInteger(probabilities=[0.2, 0.8])]
    return Hmm(pi, A, opdfs)


@pytest.fixture
def gaussian_hmm():
    """Two-state model with well separated Gaussian emissions."""
    pi = [0.5, 0.5]
    A = [[0.9, 0.1],
         [0.2, 0.8]]
    opdfs = [OpdfGaussian(0.0, 1.0), OpdfGaussian(5.0, 1.0)]
    return Hmm(pi, A, opdfs)


@pytest.fixture
def input_hmm():
    """Two-state input-driven model: input 'stay' keeps the state, 'switch' flips it."""
    pi = [0.5, 0.5]
    A = np.array([
        [[0.9, 0.1], [0.1, 0.9]],
        [[0.1, 0.9], [0.9, 0.1]]
    ])
    opdfs = [OpdfInteger(probabilities=[0.8, 0.2]), OpdfInteger(probabilities=[0.3, 0.7])]
    return InputHmm(pi, A, opdfs, ['stay', 'switch'])


@pytest.fixture
def integer_sequences():
    """Short integer training sequences."""
    raw = [
        [0, 0, 1, 1, 1, 0],
        [1, 1, 0, 0, 0, 0, 1],
        [0, 1, 1, 1, 0, 0],
    ]
    return [[ObservationInteger(v) for v in seq] for seq in raw]


@pytest.fixture
def real_sequence():
    return [ObservationReal(v) for v in [0.1, -0.3, 0.2, 5.1, 4.8, 5.3, 0.0]]


@pytest.fixture
def input_sequences():
    raw = [
        [('stay', 0), ('stay', 0), ('switch', 1), ('stay', 1), ('switch', 0)],
        [('switch', 1), ('stay', 1), ('stay', 1), ('switch', 0), ('stay', 0)],
    ]
    return [[InputObservationTuple(i, ObservationInteger(o)) for i, o in seq] for seq in raw]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
