"""
hmmkit: Hidden Markov Model toolkit

A Python library for Hidden Markov Models with pluggable emission
distributions, Baum-Welch and K-Means learning, and input-driven models
whose transitions depend on an exogenous input.
"""

__version__ = "0.1.0"
__author__ = "hmmkit Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .exceptions import (
    HMMKitError,
    InvalidArgumentError,
    FileFormatError,
    NumericalDegeneracyError,
    ModelPersistenceError
)
from .observations import (
    ObservationInteger,
    ObservationReal,
    ObservationVector,
    InputObservationTuple
)
from .opdf import (
    OpdfInteger,
    OpdfIntegerFactory,
    OpdfGaussian,
    OpdfGaussianFactory,
    OpdfMultiGaussian,
    OpdfMultiGaussianFactory
)
from .hmm import Hmm, InputHmm
from .calculators import ForwardBackwardCalculator, InputForwardBackwardCalculator, ViterbiCalculator
from .learn import BaumWelchLearner, InputBaumWelchLearner, KMeansLearner, ConvergencePolicy

__all__ = [
    "get_config",
    "set_config",
    "get_logger",
    "HMMKitError",
    "InvalidArgumentError",
    "FileFormatError",
    "NumericalDegeneracyError",
    "ModelPersistenceError",
    "ObservationInteger",
    "ObservationReal",
    "ObservationVector",
    "InputObservationTuple",
    "OpdfInteger",
    "OpdfIntegerFactory",
    "OpdfGaussian",
    "OpdfGaussianFactory",
    "OpdfMultiGaussian",
    "OpdfMultiGaussianFactory",
    "Hmm",
    "InputHmm",
    "ForwardBackwardCalculator",
    "InputForwardBackwardCalculator",
    "ViterbiCalculator",
    "BaumWelchLearner",
    "InputBaumWelchLearner",
    "KMeansLearner",
    "ConvergencePolicy",
    "__version__"
]
