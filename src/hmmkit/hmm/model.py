"""
Hidden Markov Model with an arbitrary emission distribution per state.

The model holds an initial-state distribution ``pi``, a row-stochastic
transition matrix ``A`` and one Opdf per state.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .base import HmmBase
from ..opdf import Opdf, OpdfFactory
from ..exceptions import InvalidArgumentError
from ..logger import get_logger

logger = get_logger(__name__)


class Hmm(HmmBase):
    """
    Hidden Markov Model.

    Attributes:
        pi: Initial state probabilities [n_states]
        A: Transition matrix [n_states, n_states] where A[i,j] = P(q_t+1=j | q_t=i)
        opdfs: Emission distribution of each state
    """

    def __init__(self, pi: Sequence[float], A: np.ndarray, opdfs: Sequence[Opdf]):
        """
        Build a model from explicit parameters.

        Args:
            pi: Initial state probabilities [n_states]
            A: Transition matrix [n_states, n_states]
            opdfs: One emission distribution per state

        Raises:
            InvalidArgumentError: If dimensions are inconsistent or n_states is 0
        """
        super().__init__(pi)

        A = np.array(A, dtype=float)
        if A.shape != (self.n_states, self.n_states):
            raise InvalidArgumentError(
                f"A shape {A.shape} doesn't match expected ({self.n_states}, {self.n_states})"
            )

        opdfs = list(opdfs)
        if len(opdfs) != self.n_states:
            raise InvalidArgumentError(
                f"Expected {self.n_states} emission distributions, got {len(opdfs)}"
            )

        self.A = A
        self.opdfs = opdfs

        logger.debug(f"Initialized Hmm with {self.n_states} states")

    @classmethod
    def from_factory(cls, n_states: int, opdf_factory: OpdfFactory) -> 'Hmm':
        """
        Model with uniform initial and transition probabilities.

        Args:
            n_states: Number of hidden states
            opdf_factory: Builds the emission distribution of each state
        """
        if n_states <= 0:
            raise InvalidArgumentError("Number of states must be strictly positive")

        pi = np.ones(n_states) / n_states
        A = np.ones((n_states, n_states)) / n_states
        return cls(pi, A, [opdf_factory.factor() for _ in range(n_states)])

    @classmethod
    def random(cls, n_states: int, opdf_factory: OpdfFactory, random_state: Optional[int] = None) -> 'Hmm':
        """Model with uniform pi and a random row-stochastic transition matrix."""
        if n_states <= 0:
            raise InvalidArgumentError("Number of states must be strictly positive")

        rng = np.random.default_rng(random_state)
        A = rng.random((n_states, n_states))
        A = A / A.sum(axis=1, keepdims=True)
        pi = np.ones(n_states) / n_states
        return cls(pi, A, [opdf_factory.factor() for _ in range(n_states)])

    def get_aij(self, i: int, j: int) -> float:
        return float(self.A[i, j])

    def set_aij(self, i: int, j: int, value: float) -> None:
        self.A[i, j] = value

    def get_opdf(self, state: int) -> Opdf:
        return self.opdfs[state]

    def set_opdf(self, state: int, opdf: Opdf) -> None:
        self.opdfs[state] = opdf

    def emission_matrix(self, sequence: Sequence) -> np.ndarray:
        return np.array([[opdf.probability(o) for opdf in self.opdfs] for o in sequence], dtype=float)

    def transition_matrices(self, sequence: Sequence) -> np.ndarray:
        steps = max(len(sequence) - 1, 0)
        return np.broadcast_to(self.A, (steps, self.n_states, self.n_states))

    def default_calculator(self):
        from ..calculators.forward_backward import ForwardBackwardCalculator

        return ForwardBackwardCalculator()

    def validate_stochastic_matrices(self, tolerance: Optional[float] = None) -> bool:
        """
        Validate that pi and every row of A are probability vectors.

        Returns:
            bool: True if all matrices are valid stochastic matrices

        Raises:
            InvalidArgumentError: If any matrix violates stochastic properties
        """
        tolerance = self._tolerance(tolerance)
        self._validate_pi(tolerance)

        row_sums_A = self.A.sum(axis=1)
        if not np.allclose(row_sums_A, 1.0, atol=tolerance):
            raise InvalidArgumentError(f"Transition matrix rows don't sum to 1.0: {row_sums_A}")

        if np.any(self.A < 0):
            raise InvalidArgumentError("Transition matrix contains negative values")

        logger.debug("All stochastic matrix properties validated successfully")
        return True

    def get_parameters(self) -> Tuple[np.ndarray, np.ndarray]:
        """Copies of (pi, A)."""
        return self.pi.copy(), self.A.copy()

    def set_parameters(self, pi: np.ndarray, A: np.ndarray) -> None:
        """
        Set initial and transition probabilities and validate them.

        Raises:
            InvalidArgumentError: If dimensions don't match or matrices are not stochastic
        """
        if np.shape(pi) != (self.n_states,):
            raise InvalidArgumentError(f"pi shape {np.shape(pi)} doesn't match expected ({self.n_states},)")

        if np.shape(A) != (self.n_states, self.n_states):
            raise InvalidArgumentError(
                f"A shape {np.shape(A)} doesn't match expected ({self.n_states}, {self.n_states})"
            )

        self.pi = np.array(pi, dtype=float)
        self.A = np.array(A, dtype=float)
        self.validate_stochastic_matrices()

    def to_string(self, decimals: int = 2) -> str:
        lines = []
        for i in range(self.n_states):
            lines.append(f"State {i}")
            lines.append(f"  Pi: {self.pi[i]:.{decimals}f}")
            lines.append("  Aij: " + " ".join(f"{a:.{decimals}f}" for a in self.A[i]))
            lines.append(f"  Opdf: {self.opdfs[i].to_string(decimals)}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Hmm(n_states={self.n_states})"
