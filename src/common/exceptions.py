"""
Exception Hierarchy for the Sitnikov Toolkit

All errors raised by the integrators, the root finder and the Sitnikov
model derive from NumericsError, so callers can catch the whole family
at the top level and report a single message chain.

Taxonomy:
    ConvergenceError       - root finder exhausted its iteration budget
    IntegrationError       - a derivative/acceleration callback failed
    DimensionMismatchError - state vector length differs from the buffer
    ConfigurationError     - out-of-range configuration values
    OutputError            - result files couldn't be written or read

The integration core never retries: every failure is wrapped with the
context of where it happened (``raise ... from``) and propagated.
"""

from typing import List, Optional


class NumericsError(Exception):
    """Module specific exception."""
    pass


class ConvergenceError(NumericsError):
    """
    Root finder did not converge within its iteration budget.

    Attributes:
        initial: Initial guess the iteration was started from
    """

    def __init__(self, message: str, initial: Optional[float] = None):
        super().__init__(message)
        self.initial = initial


class IntegrationError(NumericsError):
    """
    A callback failed during integration.

    Attributes:
        step: Index of the outer step being computed (0-based)
        stage: Description of the stage or sub-step that failed
        time: Time moment of the failed evaluation
        partial_result: Result buffer holding the steps completed before
                        the failure (set by the dispatcher, may be None)
    """

    def __init__(
        self,
        message: str,
        step: Optional[int] = None,
        stage: Optional[str] = None,
        time: Optional[float] = None,
    ):
        super().__init__(message)
        self.step = step
        self.stage = stage
        self.time = time
        self.partial_result = None


class DimensionMismatchError(NumericsError, ValueError):
    """
    State vector length is inconsistent with the buffer dimension.

    Attributes:
        expected: Expected length
        actual: Length that was passed
    """

    def __init__(self, expected: int, actual: int, message: Optional[str] = None):
        super().__init__(
            message or f"State vector has {actual} components, expected {expected}"
        )
        self.expected = expected
        self.actual = actual


class ConfigurationError(NumericsError, ValueError):
    """
    Configuration values are out of range.

    Attributes:
        errors: Every validation failure found
    """

    def __init__(self, errors: List[str]):
        super().__init__("Invalid configuration: " + "; ".join(errors))
        self.errors = list(errors)


class OutputError(NumericsError):
    """Result vectors couldn't be serialized or deserialized."""
    pass


def format_error_chain(exc: BaseException) -> str:
    """
    Join an exception and its causes into one message.

    Args:
        exc: Outermost exception

    Returns:
        Messages of the chain separated by ': ', outermost first
    """
    messages = []
    current = exc
    while current is not None:
        message = str(current) or current.__class__.__name__
        messages.append(message)
        current = current.__cause__
    return ": ".join(messages)
