"""
Baum-Welch (EM) learner for plain Hidden Markov Models.

One iteration runs the forward-backward calculator on every sequence,
accumulates expected transition counts across all of them (batch EM) and
then produces a new model snapshot: transitions and initial probabilities
are re-estimated and each state's emission distribution is re-fit against
the observations weighted by its posterior occupancy.

The per-sequence pass (``sequence_statistics``) does not touch shared state,
so sequences are dispatched to a joblib worker pool when ``n_jobs`` is not 1.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from .convergence import ConvergencePolicy
from ..calculators import ForwardBackwardCalculator, ForwardBackwardResult
from ..config import get_config
from ..hmm import HmmBase
from ..exceptions import InvalidArgumentError, NumericalDegeneracyError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class SequenceStatistics:
    """
    Expected statistics of one sequence under the current model.

    Attributes:
        gamma: Posterior state occupancy [T, n_states]
        transition_numerator: Sum over t of xi[t] (shape depends on the model variant)
        transition_denominator: Sum over t < T-1 of gamma[t] (shape depends on the model variant)
        log_likelihood: log P(sequence | model)
    """
    gamma: np.ndarray
    transition_numerator: np.ndarray
    transition_denominator: np.ndarray
    log_likelihood: float


class BaumWelchLearner:
    """
    Baum-Welch learner for ``Hmm`` models.

    The caller's model is never modified: every iteration returns a new
    snapshot.
    """

    default_calculator_class = ForwardBackwardCalculator

    def __init__(self,
                 calculator: Optional[ForwardBackwardCalculator] = None,
                 policy: Optional[ConvergencePolicy] = None,
                 n_jobs: Optional[int] = None):
        """
        Args:
            calculator: Forward-backward strategy (default: matches the learner's model variant)
            policy: Stopping policy used by ``learn`` (default: built from config)
            n_jobs: joblib worker count for the per-sequence pass (default: config 'learning.n_jobs')
        """
        self.calculator = calculator if calculator is not None else self.default_calculator_class()
        self.policy = policy if policy is not None else ConvergencePolicy()
        self.n_jobs = n_jobs if n_jobs is not None else get_config('learning', 'n_jobs')
        self.training_stats: Dict[str, Any] = {}

    def check_sequences(self, sequences: Sequence[Sequence]) -> List[Sequence]:
        """
        Validate training sequences.

        Raises:
            InvalidArgumentError: If there are no sequences or one is shorter than 2
        """
        sequences = list(sequences)
        if not sequences:
            raise InvalidArgumentError("At least one observation sequence is required")

        for seq_idx, sequence in enumerate(sequences):
            if len(sequence) < 2:
                raise InvalidArgumentError(
                    f"Observation sequence too short: sequence {seq_idx} has length {len(sequence)}"
                )

        return sequences

    def estimate_xi(self, result: ForwardBackwardResult) -> np.ndarray:
        """
        Joint posterior of consecutive states.

        ``xi[t, i, j] = alpha[t, i] * A_t[i, j] * b_j(o_t+1) * beta[t+1, j] / c_t+1``,
        the scaled form of dividing by P(O | model).

        Returns:
            xi [T-1, n_states, n_states]
        """
        weighted_beta = result.emissions[1:] * result.beta[1:]
        xi = result.alpha[:-1, :, np.newaxis] * result.transitions * weighted_beta[:, np.newaxis, :]
        return xi / result.scale[1:, np.newaxis, np.newaxis]

    def transition_statistics(self,
                              hmm: HmmBase,
                              sequence: Sequence,
                              gamma: np.ndarray,
                              xi: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Numerator [n_states, n_states] and denominator [n_states] of the transition estimate."""
        return xi.sum(axis=0), gamma[:-1].sum(axis=0)

    def sequence_statistics(self, hmm: HmmBase, sequence: Sequence) -> SequenceStatistics:
        """
        Expected statistics of a single sequence.

        Pure function of (model, sequence); safe to run concurrently.

        Raises:
            InvalidArgumentError: If the sequence is shorter than 2
            NumericalDegeneracyError: If the sequence has zero probability
        """
        if len(sequence) < 2:
            raise InvalidArgumentError(f"Observation sequence too short: length {len(sequence)}")

        result = self.calculator.compute(hmm, sequence)
        gamma = result.gamma
        xi = self.estimate_xi(result)
        numerator, denominator = self.transition_statistics(hmm, sequence, gamma, xi)

        return SequenceStatistics(gamma, numerator, denominator, result.log_likelihood)

    def _statistics_or_none(self, hmm: HmmBase, sequence: Sequence) -> Optional[SequenceStatistics]:
        try:
            return self.sequence_statistics(hmm, sequence)
        except NumericalDegeneracyError:
            return None

    def compute_statistics(self, hmm: HmmBase, sequences: List[Sequence]) -> List[Optional[SequenceStatistics]]:
        """Per-sequence statistics; ``None`` marks a sequence with zero probability."""
        if self.n_jobs == 1 or len(sequences) < 2:
            return [self._statistics_or_none(hmm, sequence) for sequence in sequences]

        return Parallel(n_jobs=self.n_jobs)(
            delayed(self._statistics_or_none)(hmm, sequence) for sequence in sequences
        )

    def update_transitions(self, hmm: HmmBase, numerator: np.ndarray, denominator: np.ndarray) -> None:
        """Re-estimate A; rows of states with no expected visits are left unchanged."""
        for i in range(hmm.n_states):
            if denominator[i] > 0.:
                row = numerator[i] / denominator[i]
                if np.all(np.isfinite(row)):
                    hmm.A[i] = row
            else:
                logger.debug(f"State {i} never left: transition row kept")

    def update_pi(self, hmm: HmmBase, initial_gammas: List[np.ndarray]) -> None:
        """New initial probabilities: mean of gamma[0] over sequences."""
        pi = np.mean(initial_gammas, axis=0)
        total = pi.sum()
        if np.all(np.isfinite(pi)) and total > 0:
            hmm.pi = pi / total

    def observation_of(self, item):
        """The observation an Opdf sees for one sequence item."""
        return item

    def _fit_opdf(self, opdf, observations: List, weights: np.ndarray, label: str) -> None:
        total = weights.sum()
        if not (total > 0 and np.isfinite(total)):
            logger.debug(f"Zero posterior weight for {label}: emission distribution kept")
            return
        opdf.fit(observations, weights / total)

    def update_emissions(self, hmm: HmmBase, sequences: List[Sequence], gammas: List[np.ndarray]) -> None:
        """Re-fit each state's Opdf on all observations weighted by gamma."""
        observations = [self.observation_of(item) for sequence in sequences for item in sequence]
        all_gamma = np.concatenate(gammas, axis=0)

        for i in range(hmm.n_states):
            self._fit_opdf(hmm.get_opdf(i), observations, all_gamma[:, i], f"state {i}")

    def _iterate(self, hmm: HmmBase, sequences: List[Sequence]) -> Tuple[HmmBase, float]:
        statistics = self.compute_statistics(hmm, sequences)

        kept = [(sequence, stats) for sequence, stats in zip(sequences, statistics) if stats is not None]
        skipped = len(sequences) - len(kept)
        if skipped:
            logger.warning(f"Skipped {skipped} sequence(s) with zero probability under the model")

        nhmm = hmm.copy()
        if not kept:
            logger.warning("No sequence has non-zero probability: model parameters unchanged")
            return nhmm, float('-inf')

        kept_sequences = [sequence for sequence, _ in kept]
        kept_stats = [stats for _, stats in kept]

        numerator = sum(stats.transition_numerator for stats in kept_stats)
        denominator = sum(stats.transition_denominator for stats in kept_stats)

        self.update_transitions(nhmm, numerator, denominator)
        self.update_pi(nhmm, [stats.gamma[0] for stats in kept_stats])
        self.update_emissions(nhmm, kept_sequences, [stats.gamma for stats in kept_stats])

        log_likelihood = float(sum(stats.log_likelihood for stats in kept_stats))
        return nhmm, log_likelihood

    def iterate(self, hmm: HmmBase, sequences: Sequence[Sequence]) -> HmmBase:
        """
        One Baum-Welch iteration.

        Args:
            hmm: Current model (not modified)
            sequences: Training sequences, each of length >= 2

        Returns:
            New model with re-estimated parameters
        """
        sequences = self.check_sequences(sequences)
        nhmm, _ = self._iterate(hmm, sequences)
        return nhmm

    def learn(self,
              hmm: HmmBase,
              sequences: Sequence[Sequence],
              policy: Optional[ConvergencePolicy] = None) -> HmmBase:
        """
        Iterate until the convergence policy stops.

        The log-likelihood recorded for an iteration is the one of the model
        entering it. Training statistics are kept in ``training_stats``.
        A run in which no sequence has non-zero probability stops with
        ``stop_reason`` set to 'degenerate'.

        Args:
            hmm: Initial model (not modified)
            sequences: Training sequences, each of length >= 2
            policy: Stopping policy (default: the learner's)

        Returns:
            The learned model
        """
        sequences = self.check_sequences(sequences)
        policy = policy if policy is not None else self.policy

        log_likelihood_history = []
        improvement_history = []
        converged = False
        stop_reason = 'max_iterations'
        start_time = time.time()

        logger.info(f"Starting Baum-Welch with {len(sequences)} sequences, "
                    f"max_iterations={policy.max_iterations}")

        current = hmm
        for iteration in range(policy.max_iterations):
            current, log_likelihood = self._iterate(current, sequences)
            log_likelihood_history.append(log_likelihood)

            if log_likelihood == float('-inf'):
                logger.warning(f"Every sequence was skipped at iteration {iteration + 1}: stopping")
                stop_reason = 'degenerate'
                break

            if len(log_likelihood_history) > 1:
                improvement = log_likelihood - log_likelihood_history[-2]
                improvement_history.append(improvement)
                logger.debug(f"Iteration {iteration + 1}: log_likelihood={log_likelihood:.6f}, "
                             f"improvement={improvement:.6f}")

                if improvement < -1e-6:
                    logger.warning(f"Log-likelihood decreased by {-improvement:.6f} at iteration {iteration + 1}")

                if policy.has_converged(improvement):
                    converged = True
                    stop_reason = 'converged'
                    break
            else:
                logger.debug(f"Iteration {iteration + 1}: log_likelihood={log_likelihood:.6f}")

            if policy.has_timed_out(time.time() - start_time):
                stop_reason = 'timeout'
                break

        training_time = time.time() - start_time
        self.training_stats = {
            'converged': converged,
            'stop_reason': stop_reason,
            'iterations': len(log_likelihood_history),
            'final_log_likelihood': log_likelihood_history[-1] if log_likelihood_history else None,
            'log_likelihood_history': log_likelihood_history,
            'improvement_history': improvement_history,
            'training_time': training_time
        }

        logger.info(f"Baum-Welch finished after {len(log_likelihood_history)} iterations "
                    f"({stop_reason}) in {training_time:.2f}s")

        return current if log_likelihood_history else hmm.copy()
