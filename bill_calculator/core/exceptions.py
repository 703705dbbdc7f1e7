"""Exceptions raised by the bill calculator."""


class CalculationError(Exception):
    """Base class for failures inside the calculator."""


class InvariantViolation(CalculationError):
    """Input reached the calculator without satisfying its preconditions.

    The calculator expects a reading set that already passed
    ``validate_reading_set``; anything else is a caller bug.
    """


class DegenerateApportionment(CalculationError):
    """The standing charge cannot be apportioned, e.g. usage split over zero usage."""
