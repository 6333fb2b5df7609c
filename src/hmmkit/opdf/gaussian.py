"""
Gaussian emission distributions.

``OpdfGaussian`` models real observations, ``OpdfMultiGaussian`` models
vector observations with a full covariance matrix. Densities are evaluated
with scipy.stats.
"""

from typing import Optional, Sequence

import numpy as np
from scipy.stats import norm, multivariate_normal

from .base import Opdf, OpdfFactory
from ..config import get_config
from ..observations import ObservationReal, ObservationVector
from ..exceptions import InvalidArgumentError


class OpdfGaussian(Opdf):
    """Normal distribution over ``ObservationReal``."""

    def __init__(self, mean: float = 0.0, variance: float = 1.0, min_variance: Optional[float] = None):
        if variance <= 0:
            raise InvalidArgumentError(f"Variance must be strictly positive, got {variance}")
        self.mean = float(mean)
        self.variance = float(variance)
        if min_variance is None:
            min_variance = get_config('opdf', 'min_variance')
        self.min_variance = float(min_variance)

    @staticmethod
    def _value(observation) -> float:
        if not isinstance(observation, ObservationReal):
            raise InvalidArgumentError(
                f"Expected an ObservationReal, got {type(observation).__name__}"
            )
        return observation.value

    def probability(self, observation: ObservationReal) -> float:
        return float(norm.pdf(self._value(observation), loc=self.mean, scale=np.sqrt(self.variance)))

    def fit(self, observations: Sequence[ObservationReal], weights: Optional[Sequence[float]] = None) -> None:
        w = self._normalized_weights(observations, weights)
        x = np.array([self._value(o) for o in observations])

        mean = float(np.dot(w, x))
        variance = float(np.dot(w, (x - mean) ** 2))

        self.mean = mean
        self.variance = max(variance, self.min_variance)

    def generate(self, rng: np.random.Generator) -> ObservationReal:
        return ObservationReal(rng.normal(self.mean, np.sqrt(self.variance)))

    def to_string(self, decimals: int = 2) -> str:
        return f"Gaussian distribution --- Mean: {self.mean:.{decimals}f} Variance {self.variance:.{decimals}f}"

    def __repr__(self) -> str:
        return f"OpdfGaussian(mean={self.mean}, variance={self.variance})"


class OpdfMultiGaussian(Opdf):
    """
    Multivariate normal distribution over ``ObservationVector``.

    After each fit, ``covariance_regularization`` is added to the diagonal of
    the covariance so that degenerate clusters keep a usable density.
    """

    def __init__(self,
                 mean: Sequence[float],
                 covariance: Optional[np.ndarray] = None,
                 covariance_regularization: Optional[float] = None):
        mean = np.array(mean, dtype=float)
        if mean.ndim != 1 or mean.size == 0:
            raise InvalidArgumentError("Mean must be a non-empty vector")

        if covariance is None:
            covariance = np.eye(mean.size)
        covariance = np.array(covariance, dtype=float)
        if covariance.shape != (mean.size, mean.size):
            raise InvalidArgumentError(
                f"Covariance shape {covariance.shape} doesn't match dimension {mean.size}"
            )

        self.mean = mean
        self.covariance = covariance
        if covariance_regularization is None:
            covariance_regularization = get_config('opdf', 'covariance_regularization')
        self.covariance_regularization = float(covariance_regularization)

    @property
    def dimension(self) -> int:
        return self.mean.size

    def _value(self, observation) -> np.ndarray:
        if not isinstance(observation, ObservationVector):
            raise InvalidArgumentError(
                f"Expected an ObservationVector, got {type(observation).__name__}"
            )
        if observation.dimension != self.dimension:
            raise InvalidArgumentError(
                f"Observation dimension {observation.dimension} doesn't match "
                f"distribution dimension {self.dimension}"
            )
        return observation.tag

    def probability(self, observation: ObservationVector) -> float:
        x = self._value(observation)
        return float(multivariate_normal.pdf(x, mean=self.mean, cov=self.covariance, allow_singular=True))

    def fit(self, observations: Sequence[ObservationVector], weights: Optional[Sequence[float]] = None) -> None:
        w = self._normalized_weights(observations, weights)
        x = np.vstack([self._value(o) for o in observations])

        mean = w @ x
        diff = x - mean
        covariance = (diff * w[:, None]).T @ diff
        covariance[np.diag_indices_from(covariance)] += self.covariance_regularization

        self.mean = mean
        self.covariance = covariance

    def generate(self, rng: np.random.Generator) -> ObservationVector:
        return ObservationVector(rng.multivariate_normal(self.mean, self.covariance))

    def to_string(self, decimals: int = 2) -> str:
        mean = " ".join(f"{v:.{decimals}f}" for v in self.mean)
        rows = " ".join(
            "[ " + " ".join(f"{v:.{decimals}f}" for v in row) + " ]" for row in self.covariance
        )
        return f"Multi-variate Gaussian distribution --- Mean: [ {mean} ] Covariance: {rows}"

    def __repr__(self) -> str:
        return f"OpdfMultiGaussian(mean={self.mean.tolist()}, covariance={self.covariance.tolist()})"


class OpdfGaussianFactory(OpdfFactory):
    """Builds standard normal OpdfGaussian instances."""

    def factor(self) -> OpdfGaussian:
        return OpdfGaussian()


class OpdfMultiGaussianFactory(OpdfFactory):
    """Builds zero-mean, identity-covariance OpdfMultiGaussian instances."""

    def __init__(self, dimension: int):
        if dimension <= 0:
            raise InvalidArgumentError("Dimension must be strictly positive")
        self.dimension = dimension

    def factor(self) -> OpdfMultiGaussian:
        return OpdfMultiGaussian(np.zeros(self.dimension))
