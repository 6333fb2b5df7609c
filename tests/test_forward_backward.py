"""
Tests for the forward-backward and Viterbi calculators.

Likelihoods are checked against brute-force enumeration of every state path.
"""

import itertools

import numpy as np
import pytest

from hmmkit.calculators import (
    ForwardBackwardCalculator,
    InputForwardBackwardCalculator,
    ViterbiCalculator
)
from hmmkit.exceptions import InvalidArgumentError, NumericalDegeneracyError
from hmmkit.hmm import Hmm
from hmmkit.observations import ObservationInteger, ObservationReal
from hmmkit.opdf import OpdfInteger


def brute_force_probability(hmm, sequence):
    """P(O | model) summed over every state path."""
    b = hmm.emission_matrix(sequence)
    transitions = hmm.transition_matrices(sequence)
    total = 0.0
    for path in itertools.product(range(hmm.n_states), repeat=len(sequence)):
        p = hmm.pi[path[0]] * b[0, path[0]]
        for t in range(1, len(sequence)):
            p *= transitions[t - 1][path[t - 1], path[t]] * b[t, path[t]]
        total += p
    return total


def brute_force_best_path(hmm, sequence):
    b = hmm.emission_matrix(sequence)
    transitions = hmm.transition_matrices(sequence)
    best, best_p = None, -1.0
    for path in itertools.product(range(hmm.n_states), repeat=len(sequence)):
        p = hmm.pi[path[0]] * b[0, path[0]]
        for t in range(1, len(sequence)):
            p *= transitions[t - 1][path[t - 1], path[t]] * b[t, path[t]]
        if p > best_p:
            best, best_p = list(path), p
    return best, best_p


class TestForwardBackwardLikelihood:
    """Test sequence probabilities."""

    def test_single_observation(self, integer_hmm):
        """P(o) = sum_i pi_i b_i(o)."""
        p = ForwardBackwardCalculator().probability(integer_hmm, [ObservationInteger(0)])

        assert p == pytest.approx(0.62)

    def test_two_observations(self, integer_hmm):
        seq = [ObservationInteger(0), ObservationInteger(1)]

        assert integer_hmm.ln_probability(seq) == pytest.approx(np.log(0.209))

    def test_matches_brute_force(self, integer_hmm, integer_sequences):
        calculator = ForwardBackwardCalculator()
        for seq in integer_sequences:
            expected = brute_force_probability(integer_hmm, seq)
            assert calculator.ln_probability(integer_hmm, seq) == pytest.approx(np.log(expected))

    def test_input_model_matches_brute_force(self, input_hmm, input_sequences):
        """Input-driven likelihoods use the per-step transition matrices."""
        calculator = InputForwardBackwardCalculator()
        for seq in input_sequences:
            expected = brute_force_probability(input_hmm, seq)
            assert calculator.ln_probability(input_hmm, seq) == pytest.approx(np.log(expected))

    def test_long_sequence_does_not_underflow(self, gaussian_hmm):
        """Scaling keeps the log-likelihood finite for long sequences."""
        rng = np.random.default_rng(0)
        seq = [ObservationReal(v) for v in rng.normal(0.0, 1.0, size=3000)]

        ln_p = gaussian_hmm.ln_probability(seq)

        assert np.isfinite(ln_p)
        assert ln_p < -1000


class TestForwardBackwardPosteriors:
    """Test alpha, beta and gamma."""

    def test_gamma_rows_sum_to_one(self, integer_hmm, integer_sequences):
        for seq in integer_sequences:
            result = ForwardBackwardCalculator().compute(integer_hmm, seq)

            assert result.gamma.shape == (len(seq), 2)
            np.testing.assert_allclose(result.gamma.sum(axis=1), 1.0)

    def test_alpha_beta_product_is_constant(self, integer_hmm, integer_sequences):
        """With shared scaling, sum_i alpha[t,i] beta[t,i] is 1 at every t."""
        result = ForwardBackwardCalculator().compute(integer_hmm, integer_sequences[0])

        np.testing.assert_allclose((result.alpha * result.beta).sum(axis=1), 1.0)

    def test_gamma_matches_brute_force(self, integer_hmm):
        """gamma[t, i] = P(q_t = i | O)."""
        seq = [ObservationInteger(v) for v in [0, 1, 1]]
        total = brute_force_probability(integer_hmm, seq)
        b = integer_hmm.emission_matrix(seq)
        A = integer_hmm.A

        expected = np.zeros((3, 2))
        for path in itertools.product(range(2), repeat=3):
            p = integer_hmm.pi[path[0]] * b[0, path[0]]
            for t in range(1, 3):
                p *= A[path[t - 1], path[t]] * b[t, path[t]]
            for t in range(3):
                expected[t, path[t]] += p / total

        result = ForwardBackwardCalculator().compute(integer_hmm, seq)
        np.testing.assert_allclose(result.gamma, expected)

    def test_without_beta(self, integer_hmm, integer_sequences):
        result = ForwardBackwardCalculator().compute(integer_hmm, integer_sequences[0], compute_beta=False)

        np.testing.assert_array_equal(result.beta, np.ones_like(result.alpha))


class TestForwardBackwardErrors:
    """Test argument validation and degenerate sequences."""

    def test_empty_sequence(self, integer_hmm):
        with pytest.raises(InvalidArgumentError, match="empty"):
            ForwardBackwardCalculator().compute(integer_hmm, [])

    def test_model_without_states(self, integer_hmm):
        integer_hmm.pi = np.zeros(0)

        with pytest.raises(InvalidArgumentError, match="no states"):
            ForwardBackwardCalculator().compute(integer_hmm, [ObservationInteger(0)])

    def test_wrong_model_variant(self, input_hmm, integer_hmm):
        with pytest.raises(InvalidArgumentError):
            ForwardBackwardCalculator().compute(input_hmm, [ObservationInteger(0)])
        with pytest.raises(InvalidArgumentError):
            InputForwardBackwardCalculator().compute(integer_hmm, [ObservationInteger(0)])

    def test_zero_probability_sequence(self):
        """A sequence no state can emit raises NumericalDegeneracyError."""
        hmm = Hmm([0.5, 0.5], np.full((2, 2), 0.5),
                  [OpdfInteger(probabilities=[1.0, 0.0]), OpdfInteger(probabilities=[1.0, 0.0])])

        with pytest.raises(NumericalDegeneracyError):
            ForwardBackwardCalculator().compute(hmm, [ObservationInteger(0), ObservationInteger(1)])


class TestViterbi:
    """Test most likely state sequences."""

    def test_matches_brute_force(self, integer_hmm, integer_sequences):
        for seq in integer_sequences:
            path, ln_p = ViterbiCalculator().compute(integer_hmm, seq)
            expected_path, expected_p = brute_force_best_path(integer_hmm, seq)

            assert len(path) == len(seq)
            assert path == expected_path
            assert ln_p == pytest.approx(np.log(expected_p))

    def test_separated_gaussians(self, gaussian_hmm, real_sequence):
        """Observations near 5 are decoded as state 1."""
        path, _ = gaussian_hmm.most_likely_state_sequence(real_sequence)

        assert path == [0, 0, 0, 1, 1, 1, 0]

    def test_input_model(self, input_hmm, input_sequences):
        path, ln_p = ViterbiCalculator().compute(input_hmm, input_sequences[0])
        expected_path, expected_p = brute_force_best_path(input_hmm, input_sequences[0])

        assert path == expected_path
        assert ln_p == pytest.approx(np.log(expected_p))

    def test_empty_sequence(self, integer_hmm):
        with pytest.raises(InvalidArgumentError):
            ViterbiCalculator().compute(integer_hmm, [])
