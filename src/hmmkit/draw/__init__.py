"""
Drawing module.

Graphviz dot export of models.
"""

from .dot import HmmDrawerDot, InputHmmDrawerDot

__all__ = [
    "HmmDrawerDot",
    "InputHmmDrawerDot"
]
