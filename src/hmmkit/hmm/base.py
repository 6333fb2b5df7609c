"""
Shared behaviour of the plain and input-driven Hidden Markov Models.
"""

import copy
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import get_config
from ..exceptions import InvalidArgumentError
from ..logger import get_logger

logger = get_logger(__name__)


class HmmBase:
    """
    State count and initial-state distribution common to every model.

    Subclasses own the transition structure and the emission distributions and
    provide ``emission_matrix`` and ``transition_matrices``, the two views the
    calculators need.
    """

    def __init__(self, pi: Sequence[float]):
        pi = np.array(pi, dtype=float)
        if pi.ndim != 1 or pi.size == 0:
            raise InvalidArgumentError("Number of states must be strictly positive")
        self.pi = pi

    @property
    def n_states(self) -> int:
        return self.pi.size

    def get_pi(self, state: int) -> float:
        return float(self.pi[state])

    def set_pi(self, state: int, value: float) -> None:
        self.pi[state] = value

    def get_pis(self) -> np.ndarray:
        return self.pi.copy()

    def emission_matrix(self, sequence: Sequence) -> np.ndarray:
        """Emission probabilities ``b_j(o_t)`` as a ``[T, n_states]`` array."""
        raise NotImplementedError

    def transition_matrices(self, sequence: Sequence) -> np.ndarray:
        """Transition matrices used between steps t and t+1, as a ``[T-1, n_states, n_states]`` array."""
        raise NotImplementedError

    def default_calculator(self):
        """Forward-backward calculator matching this model variant."""
        raise NotImplementedError

    def _tolerance(self, tolerance: Optional[float]) -> float:
        if tolerance is None:
            tolerance = get_config('hmm', 'validation_tolerance')
        return tolerance

    def _validate_pi(self, tolerance: float) -> None:
        if not np.allclose(self.pi.sum(), 1.0, atol=tolerance):
            raise InvalidArgumentError(f"Initial probabilities sum to {self.pi.sum()}, expected 1.0")

        if np.any(self.pi < 0):
            raise InvalidArgumentError("Initial probabilities contain negative values")

    def copy(self):
        """Deep copy of the model, including its emission distributions."""
        return copy.deepcopy(self)

    def ln_probability(self, sequence: Sequence, calculator=None) -> float:
        """
        Log-likelihood of an observation sequence.

        Args:
            sequence: Observation sequence matching this model variant
            calculator: Forward-backward calculator (default: the model's own)

        Returns:
            Natural logarithm of P(sequence | model)
        """
        if calculator is None:
            calculator = self.default_calculator()
        return calculator.ln_probability(self, sequence)

    def most_likely_state_sequence(self, sequence: Sequence) -> Tuple[List[int], float]:
        """Viterbi path and its log-probability."""
        from ..calculators.viterbi import ViterbiCalculator

        return ViterbiCalculator().compute(self, sequence)
