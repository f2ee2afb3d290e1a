class FintrackError(Exception):
    """Base class for errors raised by the evaluator."""


class ConfigurationError(FintrackError):
    """A budget or recurrence was defined with values the evaluator cannot use.

    Raised for non-positive budget limits and unknown period kinds. Callers
    surface it as a validation message.
    """


class InvariantViolation(FintrackError):
    """Input data that cannot occur legitimately, e.g. a recurrence that never converges."""
