"""
Observation module.

Observation value types, input/observation pairs and centroids.
"""

from .base import (
    Observation,
    ObservationInteger,
    ObservationReal,
    ObservationVector,
    InputObservationTuple
)
from .centroid import (
    Centroid,
    CentroidObservationInteger,
    CentroidObservationReal,
    CentroidObservationVector
)

__all__ = [
    "Observation",
    "ObservationInteger",
    "ObservationReal",
    "ObservationVector",
    "InputObservationTuple",
    "Centroid",
    "CentroidObservationInteger",
    "CentroidObservationReal",
    "CentroidObservationVector"
]
