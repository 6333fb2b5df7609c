"""
Viterbi decoding of the most likely state sequence.
"""

from typing import List, Sequence, Tuple

import numpy as np

from ..hmm import HmmBase
from ..exceptions import InvalidArgumentError, NumericalDegeneracyError


class ViterbiCalculator:
    """Log-domain Viterbi decoder for plain and input-driven models."""

    def compute(self, hmm: HmmBase, sequence: Sequence) -> Tuple[List[int], float]:
        """
        Find the most likely state sequence.

        Args:
            hmm: Model
            sequence: Observation sequence [T]

        Returns:
            Tuple of (state sequence, log-probability of that path jointly with the observations)

        Raises:
            InvalidArgumentError: If the sequence is empty or the model has no states
            NumericalDegeneracyError: If every path has zero probability
        """
        if hmm.n_states == 0:
            raise InvalidArgumentError("Model has no states")
        if len(sequence) == 0:
            raise InvalidArgumentError("Observation sequence is empty")

        T = len(sequence)
        with np.errstate(divide='ignore'):
            log_b = np.log(hmm.emission_matrix(sequence))
            log_a = np.log(hmm.transition_matrices(sequence))
            log_pi = np.log(hmm.pi)

        delta = np.empty((T, hmm.n_states))
        psi = np.zeros((T, hmm.n_states), dtype=int)

        delta[0] = log_pi + log_b[0]
        for t in range(1, T):
            trans = delta[t - 1][:, np.newaxis] + log_a[t - 1]
            psi[t] = np.argmax(trans, axis=0)
            delta[t] = trans[psi[t], np.arange(hmm.n_states)] + log_b[t]

        ln_probability = float(np.max(delta[-1]))
        if not np.isfinite(ln_probability):
            raise NumericalDegeneracyError("Observation sequence has zero probability")

        # Backtrack the most likely sequence
        path = np.empty(T, dtype=int)
        path[-1] = int(np.argmax(delta[-1]))
        for t in range(T - 2, -1, -1):
            path[t] = psi[t + 1, path[t + 1]]

        return path.tolist(), ln_probability
