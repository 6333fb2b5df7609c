"""
Unit tests for emission distributions (Opdf).

Tests cover probabilities, weighted fitting, sampling and argument
validation of the integer and Gaussian distributions.
"""

import numpy as np
import pytest

from hmmkit.config import set_config
from hmmkit.exceptions import InvalidArgumentError
from hmmkit.observations import ObservationInteger, ObservationReal, ObservationVector
from hmmkit.opdf import (
    OpdfInteger,
    OpdfIntegerFactory,
    OpdfGaussian,
    OpdfGaussianFactory,
    OpdfMultiGaussian,
    OpdfMultiGaussianFactory
)


class TestOpdfInteger:
    """Test the categorical distribution."""

    def test_uniform_by_default(self):
        """A distribution built from a size is uniform."""
        opdf = OpdfInteger(4)

        assert opdf.n_entries == 4
        assert opdf.probability(ObservationInteger(2)) == pytest.approx(0.25)

    def test_explicit_probabilities(self):
        opdf = OpdfInteger(probabilities=[0.2, 0.8])

        assert opdf.probability(ObservationInteger(1)) == pytest.approx(0.8)

    def test_invalid_construction(self):
        """Non-positive sizes and non-stochastic vectors are rejected."""
        with pytest.raises(InvalidArgumentError):
            OpdfInteger(0)
        with pytest.raises(InvalidArgumentError):
            OpdfInteger(probabilities=[0.5, 0.6])

    def test_out_of_range_observation(self):
        with pytest.raises(InvalidArgumentError, match="out of range"):
            OpdfInteger(2).probability(ObservationInteger(5))

    def test_wrong_observation_type(self):
        with pytest.raises(InvalidArgumentError):
            OpdfInteger(2).probability(ObservationReal(1.0))

    def test_weighted_fit(self):
        """Fitting with weights gives the weighted frequencies."""
        opdf = OpdfInteger(3)
        observations = [ObservationInteger(0), ObservationInteger(1), ObservationInteger(1)]

        opdf.fit(observations, [2.0, 1.0, 1.0])

        np.testing.assert_array_almost_equal(opdf.probabilities(), [0.5, 0.5, 0.0])

    def test_fit_rejects_bad_weights(self):
        """Empty sets, zero-sum, negative or mis-sized weights are rejected."""
        opdf = OpdfInteger(2)
        observations = [ObservationInteger(0), ObservationInteger(1)]

        with pytest.raises(InvalidArgumentError):
            opdf.fit([])
        with pytest.raises(InvalidArgumentError):
            opdf.fit(observations, [0.0, 0.0])
        with pytest.raises(InvalidArgumentError):
            opdf.fit(observations, [-1.0, 2.0])
        with pytest.raises(InvalidArgumentError):
            opdf.fit(observations, [1.0])

    def test_generate_respects_support(self):
        """Generated values only come from entries with positive probability."""
        opdf = OpdfInteger(probabilities=[0.0, 1.0, 0.0])
        rng = np.random.default_rng(0)

        assert all(opdf.generate(rng).value == 1 for _ in range(20))

    def test_to_string(self):
        assert OpdfInteger(2).to_string() == "Integer distribution --- 0.50 0.50"

    def test_factory_builds_fresh_instances(self):
        factory = OpdfIntegerFactory(3)

        a, b = factory.factor(), factory.factor()
        assert a is not b
        assert a.n_entries == 3


class TestOpdfGaussian:
    """Test the univariate normal distribution."""

    def test_density_at_mean(self):
        """The standard normal density at 0 is 1/sqrt(2 pi)."""
        opdf = OpdfGaussian()

        assert opdf.probability(ObservationReal(0.0)) == pytest.approx(1.0 / np.sqrt(2 * np.pi))

    def test_non_positive_variance_rejected(self):
        with pytest.raises(InvalidArgumentError):
            OpdfGaussian(0.0, 0.0)

    def test_weighted_fit(self):
        """Weighted mean and variance are recovered."""
        opdf = OpdfGaussian()
        observations = [ObservationReal(0.0), ObservationReal(2.0)]

        opdf.fit(observations, [1.0, 3.0])

        assert opdf.mean == pytest.approx(1.5)
        assert opdf.variance == pytest.approx(0.75)

    def test_variance_floor(self):
        """Fitting identical values keeps the configured minimum variance."""
        set_config('opdf', 'min_variance', 0.01)
        opdf = OpdfGaussian()

        opdf.fit([ObservationReal(3.0)] * 4)

        assert opdf.mean == pytest.approx(3.0)
        assert opdf.variance == pytest.approx(0.01)

    def test_generate(self):
        """Samples follow the distribution mean."""
        opdf = OpdfGaussian(10.0, 0.25)
        rng = np.random.default_rng(1)

        samples = [opdf.generate(rng).value for _ in range(500)]
        assert np.mean(samples) == pytest.approx(10.0, abs=0.1)

    def test_copy_is_independent(self):
        opdf = OpdfGaussianFactory().factor()
        clone = opdf.copy()
        clone.fit([ObservationReal(4.0), ObservationReal(6.0)])

        assert opdf.mean == 0.0
        assert clone.mean == pytest.approx(5.0)


class TestOpdfMultiGaussian:
    """Test the multivariate normal distribution."""

    def test_density_matches_product_of_normals(self):
        """With identity covariance the density factorizes."""
        opdf = OpdfMultiGaussian([0.0, 0.0])
        expected = (1.0 / np.sqrt(2 * np.pi)) ** 2

        assert opdf.probability(ObservationVector([0.0, 0.0])) == pytest.approx(expected)

    def test_dimension_mismatch(self):
        with pytest.raises(InvalidArgumentError):
            OpdfMultiGaussian([0.0, 0.0]).probability(ObservationVector([1.0, 2.0, 3.0]))
        with pytest.raises(InvalidArgumentError):
            OpdfMultiGaussian([0.0, 0.0], np.eye(3))

    def test_fit_recovers_mean(self):
        """The fitted mean is the weighted mean; covariance gets regularized."""
        opdf = OpdfMultiGaussian([0.0, 0.0], covariance_regularization=0.0)
        observations = [ObservationVector([1.0, 1.0]), ObservationVector([3.0, 1.0])]

        opdf.fit(observations)

        np.testing.assert_array_almost_equal(opdf.mean, [2.0, 1.0])
        np.testing.assert_array_almost_equal(opdf.covariance, [[1.0, 0.0], [0.0, 0.0]])

    def test_fit_single_point_stays_usable(self):
        """A degenerate cluster still yields a finite, positive density at its point."""
        opdf = OpdfMultiGaussian([0.0, 0.0])
        point = ObservationVector([1.0, 2.0])

        opdf.fit([point, point])

        density = opdf.probability(point)
        assert np.isfinite(density)
        assert density > 0

    def test_factory_dimension(self):
        assert OpdfMultiGaussianFactory(3).factor().dimension == 3
        with pytest.raises(InvalidArgumentError):
            OpdfMultiGaussianFactory(0)
