"""
Domain errors raised by the seating services
"""


class SeatingError(Exception):
    """Base class for seating errors"""

    status_code = 400
    error_code = "seating_error"


class InvalidConfiguration(SeatingError):
    """Raised when seating parameters can never produce an assignment"""

    status_code = 422
    error_code = "invalid_configuration"


class SeatingInvariantError(SeatingError):
    """Raised when an allocation run breaks one of its own guarantees"""

    status_code = 500
    error_code = "seating_invariant"


class RoundStateError(SeatingError):
    """Raised when a round operation does not fit the event's current round"""

    status_code = 409
    error_code = "round_state"
