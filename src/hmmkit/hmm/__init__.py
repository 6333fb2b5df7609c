"""
Hidden Markov Model module.

Plain and input-driven models.
"""

from .base import HmmBase
from .model import Hmm
from .input_model import InputHmm

__all__ = [
    "HmmBase",
    "Hmm",
    "InputHmm"
]
