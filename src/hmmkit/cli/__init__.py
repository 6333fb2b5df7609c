"""
Command-line interface module.

CLI tools to create, learn, sample, inspect and draw models.
"""

from .main import app

__all__ = [
    "app"
]
