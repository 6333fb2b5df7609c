"""
CLI utility functions.

Model and sequence file loading shared by the commands.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from ..hmm import HmmBase, InputHmm
from ..io import (
    InputObservationTupleReader,
    ObservationReader,
    parse_input_value,
    read_hmm,
    read_sequences,
    reader_for_opdf
)
from ..opdf import (
    OpdfFactory,
    OpdfGaussianFactory,
    OpdfIntegerFactory,
    OpdfMultiGaussianFactory
)
from .errors import EXIT_CODES, HMMKitCLIError, validate_file_exists


class OpdfKind(str, Enum):
    integer = "integer"
    gaussian = "gaussian"
    multi_gaussian = "multi-gaussian"


def build_opdf_factory(kind: OpdfKind, entries: Optional[int], dimension: Optional[int]) -> OpdfFactory:
    """Opdf factory selected on the command line."""
    if kind == OpdfKind.integer:
        if entries is None:
            raise HMMKitCLIError(
                "Integer distributions need a number of entries",
                exit_code=EXIT_CODES["invalid_argument"],
                suggestions=["Pass --entries, e.g. --entries 4"]
            )
        return OpdfIntegerFactory(entries)

    if kind == OpdfKind.multi_gaussian:
        if dimension is None:
            raise HMMKitCLIError(
                "Multivariate Gaussian distributions need a dimension",
                exit_code=EXIT_CODES["invalid_argument"],
                suggestions=["Pass --dimension, e.g. --dimension 2"]
            )
        return OpdfMultiGaussianFactory(dimension)

    return OpdfGaussianFactory()


def parse_inputs(inputs: Optional[str]) -> Optional[List]:
    """Comma-separated input values, parsed like the values of a sequence file."""
    if not inputs:
        return None
    return [parse_input_value(value.strip()) for value in inputs.split(",") if value.strip()]


def reader_for_model(hmm: HmmBase) -> ObservationReader:
    """Reader for the observations of a model's sequences."""
    if isinstance(hmm, InputHmm):
        return InputObservationTupleReader(reader_for_opdf(hmm.all_opdfs()[0]), hmm.inputs)
    return reader_for_opdf(hmm.get_opdf(0))


def load_model(path: Path) -> HmmBase:
    validate_file_exists(path, "model file")
    with open(path, 'rb') as f:
        return read_hmm(f)


def load_sequences(path: Path, reader: ObservationReader) -> List[Sequence]:
    validate_file_exists(path, "sequence file")
    with open(path, 'r', encoding='utf-8') as f:
        sequences = read_sequences(reader, f)

    if not sequences:
        raise HMMKitCLIError(
            f"No sequence found in {path}",
            exit_code=EXIT_CODES["invalid_argument"],
            suggestions=["Write one sequence per line, each observation followed by ';'"]
        )
    return sequences
