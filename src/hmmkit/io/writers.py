"""
Observation sequence writers, producing the format parsed by ``readers``.
"""

from typing import Iterable, Sequence, TextIO

from ..observations import (
    ObservationInteger,
    ObservationReal,
    ObservationVector,
    InputObservationTuple
)
from ..exceptions import InvalidArgumentError


def format_observation(observation) -> str:
    """Text of one observation, without the terminating ``;``."""
    if isinstance(observation, InputObservationTuple):
        return f"{observation.input}:{format_observation(observation.observation)}"
    if isinstance(observation, ObservationInteger):
        return str(observation.value)
    if isinstance(observation, ObservationReal):
        return repr(observation.value)
    if isinstance(observation, ObservationVector):
        return "[" + " ".join(repr(float(v)) for v in observation.tag) + "]"
    raise InvalidArgumentError(f"Cannot write observation of type {type(observation).__name__}")


def format_sequence(sequence: Sequence) -> str:
    return " ".join(f"{format_observation(o)};" for o in sequence)


def write_sequence(stream: TextIO, sequence: Sequence) -> None:
    stream.write(format_sequence(sequence) + "\n")


def write_sequences(stream: TextIO, sequences: Iterable[Sequence]) -> None:
    """Write one sequence per line."""
    for sequence in sequences:
        write_sequence(stream, sequence)
