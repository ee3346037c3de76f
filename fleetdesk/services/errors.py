"""Typed service errors. Each maps to one HTTP status and a client-safe message."""


class ServiceError(Exception):
    """Base class for expected failures raised by services and rendered by the API layer."""

    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(ServiceError):
    """Malformed or disallowed request content; fixable by the client."""

    status_code = 400
    default_message = "Invalid request."


class InvalidCredentialsError(ServiceError):
    """Login failed. Same message whether the user is unknown or the password is wrong."""

    status_code = 401
    default_message = "Invalid username or password."


class DuplicateUserError(ServiceError):
    status_code = 400
    default_message = "A user with this username or email already exists."


class InvalidTokenError(ServiceError):
    """
    Missing header, malformed or tampered token, expired token, or deleted user.

    reason says which, for logs only; the client always sees default_message.
    """

    status_code = 401
    default_message = "Invalid or missing token."

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__()


class ForbiddenError(ServiceError):
    """Caller is identified but lacks the required role."""

    status_code = 403
    default_message = "Admin privileges required."


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found."


class InternalError(ServiceError):
    """Storage or hashing failure. Details go to the log, never to the client."""

    status_code = 500
    default_message = "Internal server error."
