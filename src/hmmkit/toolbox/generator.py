"""
Observation sequence generators.

A generator walks a model's state chain: the first state is drawn from pi,
every call to ``observation`` emits from the current state's Opdf and then
moves to the next state.
"""

from typing import Hashable, List, Optional, Sequence

import numpy as np

from ..hmm import Hmm, InputHmm
from ..observations import InputObservationTuple
from ..exceptions import InvalidArgumentError
from ..logger import get_logger

logger = get_logger(__name__)


class MarkovGenerator:
    """Generates observation sequences from an ``Hmm``."""

    def __init__(self, hmm: Hmm, seed: Optional[int] = None):
        if hmm is None:
            raise InvalidArgumentError("A model is required to generate observations")

        self.hmm = hmm
        self._rng = np.random.default_rng(seed)
        self.state_nb = 0
        self.new_sequence()

    def _draw(self, probabilities: np.ndarray) -> int:
        p = np.asarray(probabilities, dtype=float)
        return int(self._rng.choice(p.size, p=p / p.sum()))

    def new_sequence(self) -> None:
        """Restart from a state drawn from pi."""
        self.state_nb = self._draw(self.hmm.pi)

    def observation(self):
        o = self.hmm.get_opdf(self.state_nb).generate(self._rng)
        self.state_nb = self._draw(self.hmm.A[self.state_nb])
        return o

    def observation_sequence(self, length: int) -> List:
        """
        A fresh sequence of ``length`` observations.

        Raises:
            InvalidArgumentError: If length is not positive
        """
        if length <= 0:
            raise InvalidArgumentError(f"Sequence length must be strictly positive, got {length}")

        self.new_sequence()
        return [self.observation() for _ in range(length)]


class InputMarkovGenerator(MarkovGenerator):
    """
    Generates ``InputObservationTuple`` sequences from an ``InputHmm``.

    The caller provides the input of each step; the transition into a step
    uses that step's input.
    """

    def __init__(self, hmm: InputHmm, seed: Optional[int] = None):
        super().__init__(hmm, seed)

    def observation(self, value: Hashable = None) -> InputObservationTuple:
        """
        Emit the observation of the current step under input ``value``.

        Args:
            value: Input of the current step (default: the first input value)
        """
        if value is None:
            value = self.hmm.inputs[0]
        self.hmm.get_input_index(value)  # rejects unknown inputs

        o = self.hmm.get_opdf(self.state_nb, value).generate(self._rng)
        return InputObservationTuple(value, o)

    def _advance(self, next_value: Hashable) -> None:
        k = self.hmm.get_input_index(next_value)
        self.state_nb = self._draw(self.hmm.A[self.state_nb, k])

    def observation_sequence(self, inputs: Sequence[Hashable]) -> List[InputObservationTuple]:
        """
        A fresh sequence with one observation per input value.

        Raises:
            InvalidArgumentError: If inputs is empty or holds an unknown value
        """
        inputs = list(inputs)
        if not inputs:
            raise InvalidArgumentError("At least one input value is required")

        self.new_sequence()
        sequence = [self.observation(inputs[0])]
        for value in inputs[1:]:
            self._advance(value)
            sequence.append(self.observation(value))
        return sequence
