"""
Scaled forward-backward computation.

The forward table is normalized at every time step; the per-step
normalizers ``c_t`` are kept and the backward table is rescaled with the
same factors, so that ``alpha[t] * beta[t]`` is directly the posterior state
occupancy and ``log P(O | model) = sum(log c_t)``.

Calculators hold no state and can be shared between threads or worker
processes. Learners receive the calculator they should use explicitly.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..hmm import Hmm, HmmBase, InputHmm
from ..exceptions import InvalidArgumentError, NumericalDegeneracyError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class ForwardBackwardResult:
    """
    Output of one forward-backward pass.

    Attributes:
        alpha: Scaled forward probabilities [T, n_states]
        beta: Scaled backward probabilities [T, n_states]
        scale: Scaling coefficients c_t [T]
        emissions: Emission probabilities b_j(o_t) [T, n_states]
        transitions: Transition matrix used between t and t+1 [T-1, n_states, n_states]
    """
    alpha: np.ndarray
    beta: np.ndarray
    scale: np.ndarray
    emissions: np.ndarray
    transitions: np.ndarray

    @property
    def log_likelihood(self) -> float:
        return float(np.sum(np.log(self.scale)))

    @property
    def probability(self) -> float:
        """P(O | model); underflows to 0 for long sequences, prefer log_likelihood."""
        return float(np.exp(self.log_likelihood))

    @property
    def gamma(self) -> np.ndarray:
        """Posterior state occupancy [T, n_states], each row summing to 1."""
        gamma = self.alpha * self.beta
        return gamma / gamma.sum(axis=1, keepdims=True)


class ForwardBackwardCalculator:
    """Forward-backward calculator for plain models."""

    model_type = Hmm

    def check(self, hmm: HmmBase, sequence: Sequence) -> None:
        """
        Validate a (model, sequence) pair.

        Raises:
            InvalidArgumentError: If the sequence is empty, the model has no
                states or is not of the expected variant
        """
        if not isinstance(hmm, self.model_type):
            raise InvalidArgumentError(
                f"{self.__class__.__name__} expects a {self.model_type.__name__}, "
                f"got {type(hmm).__name__}"
            )
        if hmm.n_states == 0:
            raise InvalidArgumentError("Model has no states")
        if len(sequence) == 0:
            raise InvalidArgumentError("Observation sequence is empty")

    def compute(self, hmm: HmmBase, sequence: Sequence, compute_beta: bool = True) -> ForwardBackwardResult:
        """
        Compute forward-backward algorithm with scaling to prevent numerical underflow.

        Args:
            hmm: Model
            sequence: Observation sequence [T]
            compute_beta: Whether to run the backward pass (default: True)

        Returns:
            ForwardBackwardResult; ``beta`` is all ones when compute_beta is False

        Raises:
            InvalidArgumentError: If the sequence is empty or the model has no states
            NumericalDegeneracyError: If the sequence has zero probability
        """
        self.check(hmm, sequence)

        T = len(sequence)
        n_states = hmm.n_states
        emissions = hmm.emission_matrix(sequence)
        transitions = hmm.transition_matrices(sequence)

        alpha = np.zeros((T, n_states))
        beta = np.ones((T, n_states))
        c_scale = np.zeros(T)

        # Forward pass with scaling
        alpha[0] = hmm.pi * emissions[0]
        c_scale[0] = alpha[0].sum()
        if not c_scale[0] > 0:
            raise NumericalDegeneracyError("Initial forward probabilities sum to zero")
        alpha[0] /= c_scale[0]

        for t in range(1, T):
            alpha[t] = (alpha[t - 1] @ transitions[t - 1]) * emissions[t]
            c_scale[t] = alpha[t].sum()

            if not c_scale[t] > 0:
                raise NumericalDegeneracyError(f"Forward probabilities sum to zero at time {t}")

            alpha[t] /= c_scale[t]

        # Backward pass, rescaled by the forward normalizers
        if compute_beta:
            for t in range(T - 2, -1, -1):
                beta[t] = transitions[t] @ (emissions[t + 1] * beta[t + 1])
                beta[t] /= c_scale[t + 1]

        result = ForwardBackwardResult(alpha, beta, c_scale, emissions, transitions)
        logger.debug(f"Forward-backward completed: T={T}, log_likelihood={result.log_likelihood:.6f}")

        return result

    def ln_probability(self, hmm: HmmBase, sequence: Sequence) -> float:
        """Log-likelihood of a sequence, forward pass only."""
        return self.compute(hmm, sequence, compute_beta=False).log_likelihood

    def probability(self, hmm: HmmBase, sequence: Sequence) -> float:
        return float(np.exp(self.ln_probability(hmm, sequence)))


class InputForwardBackwardCalculator(ForwardBackwardCalculator):
    """
    Forward-backward calculator for input-driven models.

    The transition into step t uses the matrix of the input observed at t,
    and emissions are conditioned on that same input.
    """

    model_type = InputHmm
