"""
Stopping policy for iterative learners.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import get_config
from ..exceptions import InvalidArgumentError


@dataclass
class ConvergencePolicy:
    """
    When to stop Baum-Welch iterations.

    Checked between iterations only, never inside a sequence's pass.

    Attributes:
        max_iterations: Iteration cap (default: config 'learning.max_iterations')
        tolerance: Stop once the log-likelihood improvement falls below it; None disables the check
        timeout_sec: Stop once the wall-clock time spent exceeds it; None disables the check
    """
    max_iterations: Optional[int] = None
    tolerance: Optional[float] = None
    timeout_sec: Optional[float] = None

    def __post_init__(self):
        if self.max_iterations is None:
            self.max_iterations = get_config('learning', 'max_iterations')
        if self.tolerance is None:
            self.tolerance = get_config('learning', 'convergence_tolerance')
        if self.timeout_sec is None:
            self.timeout_sec = get_config('learning', 'timeout_sec')

        if self.max_iterations is None or self.max_iterations < 0:
            raise InvalidArgumentError(f"max_iterations must be non-negative, got {self.max_iterations}")
        if self.timeout_sec is not None and self.timeout_sec <= 0:
            raise InvalidArgumentError(f"timeout_sec must be positive, got {self.timeout_sec}")

    def has_converged(self, improvement: float) -> bool:
        return self.tolerance is not None and improvement < self.tolerance

    def has_timed_out(self, elapsed_sec: float) -> bool:
        return self.timeout_sec is not None and elapsed_sec >= self.timeout_sec
