"""Domain exceptions raised by the lead engine services."""


class LeadEngineError(Exception):
    """Base exception for the lead engine."""

    status_code = 500


class ValidationError(LeadEngineError):
    """Raised when input is missing or invalid. Nothing has been mutated."""

    status_code = 400


class NotFoundError(LeadEngineError):
    """Raised when a lead, contractor or profile does not exist."""

    status_code = 404


class AuthorizationError(LeadEngineError):
    """Raised when the acting user may not perform the operation."""

    status_code = 403


class StoreError(LeadEngineError):
    """Raised when the database rejects a read or write."""

    status_code = 503


class NotificationError(LeadEngineError):
    """Raised when a contractor notification could not be delivered."""

    status_code = 502
