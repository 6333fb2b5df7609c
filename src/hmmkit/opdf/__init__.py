"""
Emission distribution module.

Integer, Gaussian and multivariate Gaussian observation distributions
and the factories used to build them.
"""

from .base import Opdf, OpdfFactory
from .integer import OpdfInteger, OpdfIntegerFactory
from .gaussian import (
    OpdfGaussian,
    OpdfGaussianFactory,
    OpdfMultiGaussian,
    OpdfMultiGaussianFactory
)

__all__ = [
    "Opdf",
    "OpdfFactory",
    "OpdfInteger",
    "OpdfIntegerFactory",
    "OpdfGaussian",
    "OpdfGaussianFactory",
    "OpdfMultiGaussian",
    "OpdfMultiGaussianFactory"
]
