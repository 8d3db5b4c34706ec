# Overview: Domain error hierarchy shared by services and routes.

"""
Business-rule errors.

Services raise these after rolling back their unit of work, so a failed
operation never leaves a partial mutation behind. Routes translate them to
HTTP responses using ``http_status``; anything that is not a RiceMillError
is an internal error and is logged by the route that caught it.
"""


class RiceMillError(Exception):
    """Base class for caller-visible, non-retryable business errors."""

    http_status = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": str(self), "kind": type(self).__name__}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(RiceMillError):
    """Malformed or missing input."""
    http_status = 400


class NotFound(RiceMillError):
    """A referenced dealer, order, invoice, sale, SKU or godown is absent."""
    http_status = 404


class InvalidState(RiceMillError):
    """Transition attempted from the wrong state."""
    http_status = 409


class InsufficientStock(RiceMillError):
    http_status = 409


class CapacityExceeded(RiceMillError):
    http_status = 409


class DealerInactive(RiceMillError):
    http_status = 403


class Conflict(RiceMillError):
    """Uniqueness violation (duplicate godown name, identifier collision)."""
    http_status = 409


class AuthenticationError(RiceMillError):
    http_status = 401


class PermissionDenied(RiceMillError):
    http_status = 403
