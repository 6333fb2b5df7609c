"""
Learning module.

Baum-Welch learners, K-Means initialization and convergence policy.
"""

from .convergence import ConvergencePolicy
from .baum_welch import BaumWelchLearner, SequenceStatistics
from .input_baum_welch import InputBaumWelchLearner
from .kmeans import KMeansCalculator, KMeansLearner

__all__ = [
    "ConvergencePolicy",
    "BaumWelchLearner",
    "SequenceStatistics",
    "InputBaumWelchLearner",
    "KMeansCalculator",
    "KMeansLearner"
]
