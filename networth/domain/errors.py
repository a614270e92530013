"""Exception hierarchy for networth.

Every failure is fatal for the operation that raised it. Wrapping sites use
``raise ... from err`` so the full causal chain reaches the caller.
"""


class NetWorthError(Exception):
    """Base class for all networth errors."""


class MoneyOverflowError(NetWorthError, ArithmeticError):
    """Raised when a fixed-point multiplication leaves the 64-bit range."""


class RateParseError(NetWorthError, ValueError):
    """Raised when percentage text cannot be parsed into a Rate."""


class LookupTableError(NetWorthError, ValueError):
    """Raised when lookup table entries do not form one contiguous cover."""


class TimeNotInRangeError(NetWorthError, LookupError):
    """Raised when a lookup falls outside a table's covered interval."""


class ModelValidationError(NetWorthError, ValueError):
    """Raised when model inputs reference unknown or conflicting names."""


class FlowEvaluationError(NetWorthError):
    """Raised when a flow cannot be valued or taxed at a given time."""


class SimulationError(NetWorthError):
    """Raised when a simulation run is misused or aborted."""


class PlanError(NetWorthError, ValueError):
    """Raised when plan files cannot be parsed into domain objects."""


def format_error_chain(exc: BaseException) -> str:
    """Render an exception and its causes as a single line.

    Args:
        exc: The outermost exception.

    Returns:
        Messages joined outermost first, e.g. "failed to run: year 2021: overflow".
    """
    messages: list[str] = []
    current: BaseException | None = exc
    while current is not None:
        # Only the headline of multi-line messages (e.g. validation reports)
        message = (str(current) or type(current).__name__).splitlines()[0]
        if not messages or messages[-1] != message:
            messages.append(message)
        current = current.__cause__ or (None if current.__suppress_context__ else current.__context__)
    return ": ".join(messages)
