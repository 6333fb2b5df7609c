"""
I/O module.

Observation sequence readers and writers, and model persistence.
"""

from .readers import (
    ObservationReader,
    ObservationIntegerReader,
    ObservationRealReader,
    ObservationVectorReader,
    InputObservationTupleReader,
    read_sequence,
    read_sequences,
    reader_for_opdf,
    parse_input_value
)
from .writers import format_observation, format_sequence, write_sequence, write_sequences
from .persistence import ModelPersistence, write_hmm, read_hmm

__all__ = [
    "ObservationReader",
    "ObservationIntegerReader",
    "ObservationRealReader",
    "ObservationVectorReader",
    "InputObservationTupleReader",
    "read_sequence",
    "read_sequences",
    "reader_for_opdf",
    "parse_input_value",
    "format_observation",
    "format_sequence",
    "write_sequence",
    "write_sequences",
    "ModelPersistence",
    "write_hmm",
    "read_hmm"
]
