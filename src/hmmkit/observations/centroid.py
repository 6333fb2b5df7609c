"""
Centroids of sets of observations.

A centroid is the running mean of a cluster. It is updated incrementally when
a member joins or leaves, which keeps K-Means reassignment cheap.
"""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from .base import ObservationInteger, ObservationReal, ObservationVector
from ..exceptions import InvalidArgumentError


class Centroid(ABC):
    """Mean of a set of observations supporting incremental updates."""

    @abstractmethod
    def reevaluate_add(self, observation, members: Sequence) -> None:
        """Update the mean after ``observation`` joins ``members`` (the set before the change)."""
        pass

    @abstractmethod
    def reevaluate_remove(self, observation, members: Sequence) -> None:
        """Update the mean after ``observation`` leaves ``members`` (the set before the change)."""
        pass

    @abstractmethod
    def distance(self, observation) -> float:
        pass


class CentroidObservationVector(Centroid):
    """Centroid of a set of ObservationVector; euclidean distance."""

    def __init__(self, observation: ObservationVector):
        self._value = observation.values()

    @property
    def value(self) -> np.ndarray:
        return self._value.copy()

    def reevaluate_add(self, observation: ObservationVector, members: Sequence[ObservationVector]) -> None:
        n = len(members)
        self._value = (self._value * n + observation.tag) / (n + 1)

    def reevaluate_remove(self, observation: ObservationVector, members: Sequence[ObservationVector]) -> None:
        n = len(members)
        if n <= 1:
            raise InvalidArgumentError("Cannot remove the last member of a centroid")
        self._value = (self._value * n - observation.tag) / (n - 1)

    def distance(self, observation: ObservationVector) -> float:
        diff = self._value - observation.tag
        return float(np.sqrt(np.dot(diff, diff)))

    def __repr__(self) -> str:
        return f"CentroidObservationVector({self._value.tolist()})"


class CentroidObservationReal(Centroid):
    """Centroid of a set of ObservationReal."""

    def __init__(self, observation: ObservationReal):
        self._value = float(observation.tag)

    @property
    def value(self) -> float:
        return self._value

    def reevaluate_add(self, observation, members: Sequence) -> None:
        n = len(members)
        self._value = (self._value * n + observation.tag) / (n + 1)

    def reevaluate_remove(self, observation, members: Sequence) -> None:
        n = len(members)
        if n <= 1:
            raise InvalidArgumentError("Cannot remove the last member of a centroid")
        self._value = (self._value * n - observation.tag) / (n - 1)

    def distance(self, observation) -> float:
        return abs(self._value - observation.tag)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._value})"


class CentroidObservationInteger(CentroidObservationReal):
    """Centroid of a set of ObservationInteger; the mean itself is real."""

    def __init__(self, observation: ObservationInteger):
        self._value = float(observation.tag)
