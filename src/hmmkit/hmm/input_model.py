"""
Input-driven Hidden Markov Model.

Each time step carries an exogenous input value alongside the observation.
The transition taken into step t is ``A[i, k, j]`` where ``k`` is the index
of the input observed at t. Emissions are either shared by all inputs (one
Opdf per state) or conditioned on the input (one Opdf per state and input).
"""

from typing import Any, Hashable, List, Optional, Sequence, Union

import numpy as np

from .base import HmmBase
from .model import Hmm
from ..opdf import Opdf, OpdfFactory
from ..observations import InputObservationTuple
from ..exceptions import InvalidArgumentError
from ..logger import get_logger

logger = get_logger(__name__)


class InputHmm(HmmBase):
    """
    Hidden Markov Model whose transitions depend on a per-step input.

    Attributes:
        pi: Initial state probabilities [n_states]
        A: Transition tensor [n_states, n_inputs, n_states]
        opdfs: One Opdf per state, or a [n_states][n_inputs] nested list
        inputs: The distinct input values, in index order
    """

    def __init__(self,
                 pi: Sequence[float],
                 A: np.ndarray,
                 opdfs: Sequence[Union[Opdf, Sequence[Opdf]]],
                 inputs: Sequence[Hashable]):
        super().__init__(pi)

        inputs = tuple(inputs)
        if not inputs:
            raise InvalidArgumentError("At least one input value is required")
        if len(set(inputs)) != len(inputs):
            raise InvalidArgumentError(f"Input values must be distinct: {inputs}")

        self.inputs = inputs
        self._input_index = {value: k for k, value in enumerate(inputs)}

        A = np.array(A, dtype=float)
        expected = (self.n_states, self.n_inputs, self.n_states)
        if A.shape != expected:
            raise InvalidArgumentError(f"A shape {A.shape} doesn't match expected {expected}")
        self.A = A

        opdfs = list(opdfs)
        if len(opdfs) != self.n_states:
            raise InvalidArgumentError(
                f"Expected {self.n_states} emission entries, got {len(opdfs)}"
            )
        self.emission_per_input = not isinstance(opdfs[0], Opdf)
        if self.emission_per_input:
            opdfs = [list(row) for row in opdfs]
            if any(len(row) != self.n_inputs for row in opdfs):
                raise InvalidArgumentError(
                    f"Each state needs one emission distribution per input ({self.n_inputs})"
                )
        self.opdfs = opdfs

        logger.debug(f"Initialized InputHmm with {self.n_states} states and {self.n_inputs} inputs")

    @classmethod
    def from_factory(cls,
                     n_states: int,
                     inputs: Sequence[Hashable],
                     opdf_factory: OpdfFactory,
                     emission_per_input: bool = False) -> 'InputHmm':
        """Model with uniform initial and transition probabilities."""
        if n_states <= 0:
            raise InvalidArgumentError("Number of states must be strictly positive")

        inputs = tuple(inputs)
        pi = np.ones(n_states) / n_states
        A = np.ones((n_states, len(inputs), n_states)) / n_states
        if emission_per_input:
            opdfs = [[opdf_factory.factor() for _ in inputs] for _ in range(n_states)]
        else:
            opdfs = [opdf_factory.factor() for _ in range(n_states)]
        return cls(pi, A, opdfs, inputs)

    @classmethod
    def from_hmm(cls, hmm: Hmm, inputs: Sequence[Hashable], emission_per_input: bool = False) -> 'InputHmm':
        """
        Lift a plain model into an input-driven one.

        Every input bucket starts with a copy of the plain transition matrix and
        the plain emission distributions, which makes K-Means output usable as
        a starting point for input-driven learning.
        """
        inputs = tuple(inputs)
        A = np.repeat(hmm.A[:, np.newaxis, :], len(inputs), axis=1)
        if emission_per_input:
            opdfs = [[opdf.copy() for _ in inputs] for opdf in hmm.opdfs]
        else:
            opdfs = [opdf.copy() for opdf in hmm.opdfs]
        return cls(hmm.pi.copy(), A, opdfs, inputs)

    @property
    def n_inputs(self) -> int:
        return len(self.inputs)

    def get_input_index(self, value: Hashable) -> int:
        """Index of an input value in the transition tensor."""
        try:
            return self._input_index[value]
        except KeyError:
            raise InvalidArgumentError(f"Unknown input value: {value!r}") from None
        except TypeError:
            raise InvalidArgumentError(f"Input value is not hashable: {value!r}") from None

    def input_indices(self, sequence: Sequence[InputObservationTuple]) -> np.ndarray:
        return np.array([self.get_input_index(item.input) for item in sequence], dtype=int)

    def get_aixj(self, i: int, value: Hashable, j: int) -> float:
        return float(self.A[i, self.get_input_index(value), j])

    def set_aixj(self, i: int, value: Hashable, j: int, probability: float) -> None:
        self.A[i, self.get_input_index(value), j] = probability

    def get_opdf(self, state: int, value: Optional[Hashable] = None) -> Opdf:
        """
        Emission distribution of a state.

        Args:
            state: State number
            value: Input value; required when emissions depend on the input
        """
        if not self.emission_per_input:
            return self.opdfs[state]
        if value is None:
            raise InvalidArgumentError("Emissions depend on the input: an input value is required")
        return self.opdfs[state][self.get_input_index(value)]

    def set_opdf(self, state: int, opdf: Opdf, value: Optional[Hashable] = None) -> None:
        if not self.emission_per_input:
            self.opdfs[state] = opdf
        elif value is None:
            raise InvalidArgumentError("Emissions depend on the input: an input value is required")
        else:
            self.opdfs[state][self.get_input_index(value)] = opdf

    @staticmethod
    def _check_item(item: Any) -> InputObservationTuple:
        if not isinstance(item, InputObservationTuple):
            raise InvalidArgumentError(
                f"Expected an InputObservationTuple, got {type(item).__name__}"
            )
        return item

    def emission_matrix(self, sequence: Sequence[InputObservationTuple]) -> np.ndarray:
        rows = []
        for item in sequence:
            item = self._check_item(item)
            rows.append([
                self.get_opdf(j, item.input).probability(item.observation)
                for j in range(self.n_states)
            ])
        return np.array(rows, dtype=float)

    def transition_matrices(self, sequence: Sequence[InputObservationTuple]) -> np.ndarray:
        if len(sequence) < 2:
            return np.zeros((0, self.n_states, self.n_states))
        ks = self.input_indices(sequence)[1:]
        return self.A[:, ks, :].transpose(1, 0, 2)

    def default_calculator(self):
        from ..calculators.forward_backward import InputForwardBackwardCalculator

        return InputForwardBackwardCalculator()

    def validate_stochastic_matrices(self, tolerance: Optional[float] = None) -> bool:
        """
        Validate pi and every (state, input) row of A.

        Raises:
            InvalidArgumentError: If any matrix violates stochastic properties
        """
        tolerance = self._tolerance(tolerance)
        self._validate_pi(tolerance)

        row_sums_A = self.A.sum(axis=2)
        if not np.allclose(row_sums_A, 1.0, atol=tolerance):
            raise InvalidArgumentError(f"Transition rows don't sum to 1.0: {row_sums_A}")

        if np.any(self.A < 0):
            raise InvalidArgumentError("Transition tensor contains negative values")

        return True

    def all_opdfs(self) -> List[Opdf]:
        if self.emission_per_input:
            return [opdf for row in self.opdfs for opdf in row]
        return list(self.opdfs)

    def to_string(self, decimals: int = 2) -> str:
        lines = []
        for i in range(self.n_states):
            lines.append(f"State {i}")
            lines.append(f"  Pi: {self.pi[i]:.{decimals}f}")
            for k, value in enumerate(self.inputs):
                row = " ".join(f"{a:.{decimals}f}" for a in self.A[i, k])
                lines.append(f"  Aij [{value}]: {row}")
            if self.emission_per_input:
                for k, value in enumerate(self.inputs):
                    lines.append(f"  Opdf [{value}]: {self.opdfs[i][k].to_string(decimals)}")
            else:
                lines.append(f"  Opdf: {self.opdfs[i].to_string(decimals)}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"InputHmm(n_states={self.n_states}, inputs={list(self.inputs)})"
