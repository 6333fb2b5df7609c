"""
Toolbox module.

Observation sequence generators.
"""

from .generator import MarkovGenerator, InputMarkovGenerator

__all__ = [
    "MarkovGenerator",
    "InputMarkovGenerator"
]
