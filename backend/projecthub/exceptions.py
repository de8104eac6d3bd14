"""Domain exceptions.

Services raise these instead of HTTP errors; the application maps each one
to its ``status_code`` with a ``{"message": ...}`` body.
"""

from fastapi import status


class ProjectHubError(Exception):
    """Base exception for domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidRequestError(ProjectHubError):
    """Request is missing a field or carries a value outside the allowed set."""


class NotFoundError(ProjectHubError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found.")


class ForbiddenError(ProjectHubError):
    """Actor has no access to the referenced project."""

    status_code = status.HTTP_403_FORBIDDEN
