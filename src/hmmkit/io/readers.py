"""
Observation sequence readers.

Text format: one sequence per line, each observation terminated by ``;``.
``#`` starts a comment running to the end of the line; blank lines are
ignored. Observation syntax depends on the reader:

    integer:   3;
    real:      -2.5;
    vector:    [1 2.5 -3];
    input:     up:3;        (input value, colon, inner observation)

Every parse error raises FileFormatError carrying the line number.
"""

import re
from abc import ABC, abstractmethod
from typing import Hashable, Iterable, List, Optional, TextIO, Union

from ..observations import (
    ObservationInteger,
    ObservationReal,
    ObservationVector,
    InputObservationTuple
)
from ..opdf import Opdf, OpdfInteger, OpdfGaussian, OpdfMultiGaussian
from ..exceptions import FileFormatError, InvalidArgumentError
from ..logger import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?(?![\w.+-]))"
    r"|(?P<word>[A-Za-z_][\w.-]*(?![\w.+-]))"
    r"|(?P<punct>[\[\];:])"
    r")"
)


class TokenStream:
    """Tokens of a single line, consumed left to right."""

    NUMBER = 'number'
    WORD = 'word'
    PUNCT = 'punct'

    def __init__(self, line: str, line_number: int):
        self.line_number = line_number
        self._tokens = self._tokenize(line.split('#', 1)[0])
        self._position = 0

    def _tokenize(self, text: str):
        tokens = []
        position = 0
        text = text.rstrip()
        while position < len(text):
            match = _TOKEN_RE.match(text, position)
            if match is None or match.end() == position:
                raise FileFormatError(self.line_number, f"Unexpected character {text[position:].lstrip()[:1]!r}")
            kind = match.lastgroup
            tokens.append((kind, match.group(kind)))
            position = match.end()
        return tokens

    def at_end(self) -> bool:
        return self._position >= len(self._tokens)

    def peek(self):
        if self.at_end():
            return None, None
        return self._tokens[self._position]

    def next(self):
        token = self.peek()
        if token[0] is not None:
            self._position += 1
        return token

    def expect(self, symbol: str) -> None:
        kind, text = self.next()
        if kind != self.PUNCT or text != symbol:
            raise FileFormatError(self.line_number, f"'{symbol}' expected")

    def error(self, message: str) -> FileFormatError:
        return FileFormatError(self.line_number, message)


def parse_input_value(text: str) -> Hashable:
    """Input value of a token: ``int`` or ``float`` for numbers, the text itself otherwise."""
    text = text.strip()
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    match = _TOKEN_RE.fullmatch(text)
    if match is not None and match.lastgroup == TokenStream.NUMBER:
        return float(text)
    return text


class ObservationReader(ABC):
    """Reads one observation, including its terminating ``;``."""

    @abstractmethod
    def read_value(self, tokens: TokenStream):
        """Read the observation body, without the terminator."""
        pass

    def read(self, tokens: TokenStream):
        observation = self.read_value(tokens)
        tokens.expect(';')
        return observation


class ObservationIntegerReader(ObservationReader):
    """Reads ``ObservationInteger`` values, optionally checking they lie in ``[0, n_entries)``."""

    def __init__(self, n_entries: Optional[int] = None):
        if n_entries is not None and n_entries <= 0:
            raise InvalidArgumentError("Number of entries must be strictly positive")
        self.n_entries = n_entries

    def read_value(self, tokens: TokenStream) -> ObservationInteger:
        kind, text = tokens.next()
        if kind != TokenStream.NUMBER or not re.fullmatch(r"[+-]?\d+", text):
            raise tokens.error("Integer expected")

        value = int(text)
        if self.n_entries is not None and not 0 <= value < self.n_entries:
            raise tokens.error(f"Integer {value} out of range [0, {self.n_entries - 1}]")
        return ObservationInteger(value)


class ObservationRealReader(ObservationReader):
    """Reads ``ObservationReal`` values."""

    def read_value(self, tokens: TokenStream) -> ObservationReal:
        kind, text = tokens.next()
        if kind != TokenStream.NUMBER:
            raise tokens.error("Number expected")
        return ObservationReal(float(text))


class ObservationVectorReader(ObservationReader):
    """
    Reads ``ObservationVector`` values such as ``[76 45. -2.23]``.

    When a dimension is given, vectors of any other size are rejected.
    """

    def __init__(self, dimension: Optional[int] = None):
        if dimension is not None and dimension <= 0:
            raise InvalidArgumentError("Dimension must be strictly positive")
        self.dimension = dimension

    def read_value(self, tokens: TokenStream) -> ObservationVector:
        tokens.expect('[')

        values = []
        while True:
            kind, text = tokens.next()
            if kind == TokenStream.NUMBER:
                values.append(float(text))
            elif kind == TokenStream.PUNCT and text == ']':
                if not values:
                    raise tokens.error("Empty vector found")
                break
            else:
                raise tokens.error("Number or ']' expected")

        if self.dimension is not None and len(values) != self.dimension:
            raise tokens.error(
                f"Bad observation: wrong dimension ({len(values)} instead of {self.dimension})"
            )
        return ObservationVector(values)


class InputObservationTupleReader(ObservationReader):
    """
    Reads ``input:observation`` pairs.

    The input is a word or a number; numbers become ``int`` when integral.
    The observation is parsed by ``observation_reader``.
    """

    def __init__(self, observation_reader: ObservationReader, inputs: Optional[Iterable[Hashable]] = None):
        self.observation_reader = observation_reader
        self.inputs = set(inputs) if inputs is not None else None

    def read_value(self, tokens: TokenStream) -> InputObservationTuple:
        kind, text = tokens.next()
        if kind not in (TokenStream.WORD, TokenStream.NUMBER):
            raise tokens.error("Input value expected")

        value = parse_input_value(text)
        if self.inputs is not None and value not in self.inputs:
            raise tokens.error(f"Unknown input value {value!r}")

        tokens.expect(':')
        return InputObservationTuple(value, self.observation_reader.read_value(tokens))


def read_sequence(reader: ObservationReader, line: str, line_number: int = 1) -> List:
    """Parse the observations of a single line."""
    tokens = TokenStream(line, line_number)
    sequence = []
    while not tokens.at_end():
        sequence.append(reader.read(tokens))
    return sequence


def read_sequences(reader: ObservationReader, stream: Union[TextIO, Iterable[str]]) -> List[List]:
    """
    Read every sequence of a text stream.

    Args:
        reader: Parses one observation
        stream: Text stream or iterable of lines

    Returns:
        List of sequences; blank and comment-only lines produce none

    Raises:
        FileFormatError: On the first malformed observation
    """
    sequences = []
    for line_number, line in enumerate(stream, start=1):
        sequence = read_sequence(reader, line, line_number)
        if sequence:
            sequences.append(sequence)

    logger.debug(f"Read {len(sequences)} sequences")
    return sequences


def reader_for_opdf(opdf: Opdf) -> ObservationReader:
    """Reader producing the observations an Opdf accepts."""
    if isinstance(opdf, OpdfInteger):
        return ObservationIntegerReader(opdf.n_entries)
    if isinstance(opdf, OpdfGaussian):
        return ObservationRealReader()
    if isinstance(opdf, OpdfMultiGaussian):
        return ObservationVectorReader(opdf.dimension)
    raise InvalidArgumentError(f"No reader for {type(opdf).__name__}")
