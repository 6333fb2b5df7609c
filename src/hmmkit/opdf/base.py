"""
Emission distribution (Opdf) interface.

An Opdf maps observations to probabilities (or densities) and can be re-fit
against a weighted set of observations. Concrete distributions are selected
when a model is built, usually through an OpdfFactory.
"""

import copy
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from ..exceptions import InvalidArgumentError


class Opdf(ABC):
    """Observation probability distribution."""

    @abstractmethod
    def probability(self, observation) -> float:
        """Probability (or density) of ``observation``."""
        pass

    @abstractmethod
    def fit(self, observations: Sequence, weights: Optional[Sequence[float]] = None) -> None:
        """
        Replace the parameters with the weighted maximum likelihood estimate.

        Args:
            observations: Non-empty sequence of observations
            weights: One non-negative weight per observation; uniform when None
        """
        pass

    @abstractmethod
    def generate(self, rng: np.random.Generator):
        """Draw one observation."""
        pass

    def copy(self) -> 'Opdf':
        return copy.deepcopy(self)

    def to_string(self, decimals: int = 2) -> str:
        return repr(self)

    def __str__(self) -> str:
        return self.to_string()

    @staticmethod
    def _normalized_weights(observations: Sequence, weights: Optional[Sequence[float]]) -> np.ndarray:
        """Validate weights against observations and scale them to sum to 1."""
        n = len(observations)
        if n == 0:
            raise InvalidArgumentError("Cannot fit a distribution on an empty observation set")

        if weights is None:
            return np.full(n, 1.0 / n)

        w = np.asarray(weights, dtype=float)
        if w.shape != (n,):
            raise InvalidArgumentError(
                f"Expected {n} weights, got array of shape {w.shape}"
            )
        if np.any(w < 0) or not np.all(np.isfinite(w)):
            raise InvalidArgumentError("Weights must be finite and non-negative")

        total = w.sum()
        if total <= 0:
            raise InvalidArgumentError("Weights sum to zero")

        return w / total


class OpdfFactory(ABC):
    """Builds fresh Opdf instances of one kind."""

    @abstractmethod
    def factor(self) -> Opdf:
        pass
