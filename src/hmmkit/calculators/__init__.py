"""
Calculator module.

Scaled forward-backward and Viterbi computations.
"""

from .forward_backward import (
    ForwardBackwardResult,
    ForwardBackwardCalculator,
    InputForwardBackwardCalculator
)
from .viterbi import ViterbiCalculator

__all__ = [
    "ForwardBackwardResult",
    "ForwardBackwardCalculator",
    "InputForwardBackwardCalculator",
    "ViterbiCalculator"
]
