"""
Baum-Welch learner for input-driven Hidden Markov Models.

Transition statistics are bucketed by the input observed at the destination
step, so ``A[i, k, j]`` is estimated only from the transitions that were
taken under input ``k``. A bucket with no expected visits keeps its previous
row. When emissions depend on the input, each (state, input) distribution is
re-fit on the observations of its bucket only.
"""

from typing import List, Sequence, Tuple

import numpy as np

from .baum_welch import BaumWelchLearner
from ..calculators import InputForwardBackwardCalculator
from ..hmm import InputHmm
from ..observations import InputObservationTuple
from ..logger import get_logger

logger = get_logger(__name__)


class InputBaumWelchLearner(BaumWelchLearner):
    """Baum-Welch learner for ``InputHmm`` models."""

    default_calculator_class = InputForwardBackwardCalculator

    def transition_statistics(self,
                              hmm: InputHmm,
                              sequence: Sequence[InputObservationTuple],
                              gamma: np.ndarray,
                              xi: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Numerator [n_states, n_inputs, n_states] and denominator [n_states, n_inputs]."""
        numerator = np.zeros((hmm.n_states, hmm.n_inputs, hmm.n_states))
        denominator = np.zeros((hmm.n_states, hmm.n_inputs))

        next_inputs = hmm.input_indices(sequence)[1:]
        for t, k in enumerate(next_inputs):
            numerator[:, k, :] += xi[t]
            denominator[:, k] += gamma[t]

        return numerator, denominator

    def update_transitions(self, hmm: InputHmm, numerator: np.ndarray, denominator: np.ndarray) -> None:
        for i in range(hmm.n_states):
            for k in range(hmm.n_inputs):
                if denominator[i, k] > 0.:  # State i is reachable given k
                    row = numerator[i, k] / denominator[i, k]
                    if np.all(np.isfinite(row)):
                        hmm.A[i, k] = row
                else:
                    logger.debug(f"State {i} never left under input {hmm.inputs[k]!r}: transition row kept")

    def observation_of(self, item: InputObservationTuple):
        return item.observation

    def update_emissions(self,
                         hmm: InputHmm,
                         sequences: List[Sequence[InputObservationTuple]],
                         gammas: List[np.ndarray]) -> None:
        if not hmm.emission_per_input:
            super().update_emissions(hmm, sequences, gammas)
            return

        observations = [item.observation for sequence in sequences for item in sequence]
        inputs = np.concatenate([hmm.input_indices(sequence) for sequence in sequences])
        all_gamma = np.concatenate(gammas, axis=0)

        for i in range(hmm.n_states):
            for k, value in enumerate(hmm.inputs):
                weights = np.where(inputs == k, all_gamma[:, i], 0.0)
                self._fit_opdf(hmm.opdfs[i][k], observations, weights, f"state {i}, input {value!r}")
