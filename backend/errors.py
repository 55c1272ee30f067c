"""
errors.py — Engine failure taxonomy
Each error carries an internal message for logs and a user_message safe to show
in the app. Routes translate them into HTTP responses via `to_http_exception`.
"""

import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

GENERIC_RETRY_MESSAGE = "Something went wrong. Please try again."


class PactError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    user_message = GENERIC_RETRY_MESSAGE

    def __init__(self, message: str = "", user_message: str | None = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class Unauthenticated(PactError):
    status_code = status.HTTP_401_UNAUTHORIZED
    user_message = "You must be logged in to check in"


class NotParticipant(PactError):
    status_code = status.HTTP_403_FORBIDDEN
    user_message = "You are not part of this pact"


class PactNotFound(PactError):
    status_code = status.HTTP_404_NOT_FOUND
    user_message = "Pact not found"


class GroupNotFound(PactError):
    status_code = status.HTTP_404_NOT_FOUND
    user_message = "Group not found"


class AlreadyCheckedIn(PactError):
    status_code = status.HTTP_409_CONFLICT
    user_message = "You already checked in today"


class PactLimitReached(PactError):
    status_code = status.HTTP_403_FORBIDDEN
    user_message = "Pact limit reached for this group. Upgrade for unlimited pacts."


class InvalidPactConfiguration(PactError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    user_message = "Invalid pact configuration"


class PersistenceFailure(PactError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class SideEffectFailure(PactError):
    """Raised inside best-effort side effects; logged, never surfaced."""


def to_http_exception(err: Exception) -> HTTPException:
    """Map an engine error to its HTTP response; anything else is a generic 500."""
    if not isinstance(err, PactError):
        logger.error("Unhandled error", exc_info=err)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_RETRY_MESSAGE)
    headers = None
    if isinstance(err, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(status_code=err.status_code, detail=err.user_message, headers=headers)
