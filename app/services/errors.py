"""Service-layer errors. Routers let these propagate; app.main maps each kind to an HTTP status."""


class ServiceError(Exception):
    """Base for every error the core raises on purpose."""

    kind = "service_error"
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidArgument(ServiceError):
    kind = "invalid_argument"
    status_code = 400
    default_message = "Invalid request"


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = 403
    default_message = "Not authorized"


class Conflict(ServiceError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class ExpiredCapability(ServiceError):
    kind = "expired_capability"
    status_code = 401
    default_message = "Signing link is invalid or has expired."


class DependencyFailure(ServiceError):
    """Storage or notifier unreachable. Detail is generic; the cause is logged, not returned."""

    kind = "dependency_failure"
    status_code = 502
    default_message = "A backing service is unavailable. Please try again later."
