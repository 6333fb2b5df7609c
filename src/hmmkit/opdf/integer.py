"""
Categorical distribution over the integers 0 .. n_entries-1.
"""

from typing import Optional, Sequence

import numpy as np

from .base import Opdf, OpdfFactory
from ..observations import ObservationInteger
from ..exceptions import InvalidArgumentError


class OpdfInteger(Opdf):
    """
    Distribution over ``ObservationInteger`` values in ``[0, n_entries)``.

    Built either from a number of entries (uniform) or from an explicit
    probability vector.
    """

    def __init__(self, n_entries: Optional[int] = None, probabilities: Optional[Sequence[float]] = None):
        if probabilities is not None:
            p = np.array(probabilities, dtype=float)
            if p.ndim != 1 or p.size == 0:
                raise InvalidArgumentError("Probabilities must be a non-empty vector")
            if np.any(p < 0) or not np.isclose(p.sum(), 1.0):
                raise InvalidArgumentError(f"Invalid probabilities: {p.tolist()}")
            if n_entries is not None and n_entries != p.size:
                raise InvalidArgumentError(
                    f"n_entries={n_entries} does not match {p.size} probabilities"
                )
            self._probabilities = p
        else:
            if n_entries is None or n_entries <= 0:
                raise InvalidArgumentError("Number of entries must be strictly positive")
            self._probabilities = np.full(n_entries, 1.0 / n_entries)

    @property
    def n_entries(self) -> int:
        return self._probabilities.size

    def probabilities(self) -> np.ndarray:
        return self._probabilities.copy()

    def _index(self, observation) -> int:
        if not isinstance(observation, ObservationInteger):
            raise InvalidArgumentError(
                f"Expected an ObservationInteger, got {type(observation).__name__}"
            )
        if not 0 <= observation.value < self.n_entries:
            raise InvalidArgumentError(
                f"Observation {observation.value} out of range [0, {self.n_entries - 1}]"
            )
        return observation.value

    def probability(self, observation: ObservationInteger) -> float:
        return float(self._probabilities[self._index(observation)])

    def fit(self, observations: Sequence[ObservationInteger], weights: Optional[Sequence[float]] = None) -> None:
        w = self._normalized_weights(observations, weights)
        indices = np.array([self._index(o) for o in observations], dtype=int)
        counts = np.bincount(indices, weights=w, minlength=self.n_entries)
        self._probabilities = counts / counts.sum()

    def generate(self, rng: np.random.Generator) -> ObservationInteger:
        return ObservationInteger(int(rng.choice(self.n_entries, p=self._probabilities)))

    def to_string(self, decimals: int = 2) -> str:
        values = " ".join(f"{p:.{decimals}f}" for p in self._probabilities)
        return f"Integer distribution --- {values}"

    def __repr__(self) -> str:
        return f"OpdfInteger(probabilities={self._probabilities.tolist()})"


class OpdfIntegerFactory(OpdfFactory):
    """Builds uniform OpdfInteger instances."""

    def __init__(self, n_entries: int):
        if n_entries <= 0:
            raise InvalidArgumentError("Number of entries must be strictly positive")
        self.n_entries = n_entries

    def factor(self) -> OpdfInteger:
        return OpdfInteger(self.n_entries)
