"""
Exception hierarchy for hmmkit.
"""


class HMMKitError(Exception):
    """Base exception for hmmkit."""
    pass


class InvalidArgumentError(HMMKitError, ValueError):
    """Malformed arguments: empty or too short sequences, bad dimensions, zero states."""
    pass


class FileFormatError(HMMKitError):
    """Parse failure in an observation or model stream."""

    def __init__(self, line_number: int, message: str):
        self.line_number = line_number
        self.message = message
        super().__init__(f"Line {line_number}: {message}")


class NumericalDegeneracyError(HMMKitError, ArithmeticError):
    """A sequence has zero probability under the model."""
    pass


class ModelPersistenceError(HMMKitError):
    """Model serialization, deserialization or metadata failures."""
    pass
