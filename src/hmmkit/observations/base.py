"""
Observation value types.

Observations are immutable values consumed by emission distributions.
Scalar observations wrap a single integer or real; vector observations wrap
a fixed-length real vector backed by a read-only numpy array.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Union

import numpy as np

from ..exceptions import InvalidArgumentError


class Observation:
    """Base class of all observation types."""

    def factor(self):
        """Return a centroid initialized with this observation."""
        raise NotImplementedError

    def to_string(self, decimals: int = 2) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class ObservationInteger(Observation):
    """Observation holding an integer value."""
    value: int

    def __post_init__(self):
        object.__setattr__(self, 'value', int(self.value))

    @property
    def tag(self) -> int:
        return self.value

    def factor(self):
        from .centroid import CentroidObservationInteger
        return CentroidObservationInteger(self)

    def to_string(self, decimals: int = 2) -> str:
        return str(self.value)

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class ObservationReal(Observation):
    """Observation holding a real value."""
    value: float

    def __post_init__(self):
        object.__setattr__(self, 'value', float(self.value))

    @property
    def tag(self) -> float:
        return self.value

    def factor(self):
        from .centroid import CentroidObservationReal
        return CentroidObservationReal(self)

    def to_string(self, decimals: int = 2) -> str:
        return f"{self.value:.{decimals}f}"

    def __str__(self) -> str:
        return self.to_string()


class ObservationVector(Observation):
    """
    Observation described by a vector of reals.

    The values are copied on construction and stored read-only, so an
    instance never changes once built.
    """

    __slots__ = ('_value',)

    def __init__(self, values: Union[Iterable[float], np.ndarray]):
        value = np.array(values, dtype=float).ravel()
        if value.size == 0:
            raise InvalidArgumentError("Dimension must be strictly positive")
        value.setflags(write=False)
        self._value = value

    @classmethod
    def zeros(cls, dimension: int) -> 'ObservationVector':
        """An observation whose components are 0."""
        if dimension <= 0:
            raise InvalidArgumentError("Dimension must be strictly positive")
        return cls(np.zeros(dimension))

    @property
    def dimension(self) -> int:
        return self._value.size

    @property
    def tag(self) -> np.ndarray:
        """Raw (read-only) values, used for centroid computation."""
        return self._value

    def values(self) -> np.ndarray:
        """Return a writable copy of the values."""
        return self._value.copy()

    def value(self, i: int) -> float:
        return float(self._value[i])

    def factor(self):
        from .centroid import CentroidObservationVector
        return CentroidObservationVector(self)

    def _check_dimension(self, other: 'ObservationVector'):
        if not isinstance(other, ObservationVector):
            raise InvalidArgumentError(f"Expected an ObservationVector, got {type(other).__name__}")
        if other.dimension != self.dimension:
            raise InvalidArgumentError(
                f"Dimension mismatch: {self.dimension} and {other.dimension}"
            )

    def plus(self, other: 'ObservationVector') -> 'ObservationVector':
        self._check_dimension(other)
        return ObservationVector(self._value + other._value)

    def minus(self, other: 'ObservationVector') -> 'ObservationVector':
        self._check_dimension(other)
        return ObservationVector(self._value - other._value)

    def times(self, c: float) -> 'ObservationVector':
        return ObservationVector(self._value * float(c))

    __add__ = plus
    __sub__ = minus

    def __mul__(self, c: float) -> 'ObservationVector':
        return self.times(c)

    __rmul__ = __mul__

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ObservationVector):
            return NotImplemented
        return np.array_equal(self._value, other._value)

    def __hash__(self) -> int:
        return hash(self._value.tobytes())

    def __len__(self) -> int:
        return self.dimension

    def to_string(self, decimals: int = 2) -> str:
        return "[ " + " ".join(f"{v:.{decimals}f}" for v in self._value) + " ]"

    def __repr__(self) -> str:
        return f"ObservationVector({self._value.tolist()})"

    def __getstate__(self):
        return self._value.tolist()

    def __setstate__(self, state):
        value = np.array(state, dtype=float)
        value.setflags(write=False)
        self._value = value


@dataclass(frozen=True)
class InputObservationTuple:
    """Pairs the exogenous input of a time step with its observation."""
    input: Any
    observation: Observation

    def to_string(self, decimals: int = 2) -> str:
        return f"{self.input}:{self.observation.to_string(decimals)}"

    def __str__(self) -> str:
        return self.to_string()
