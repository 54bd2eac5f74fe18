"""
Domain errors raised by catalog routes.

Validation failures and blocked deletions are not errors: routes render
them as normal pages. Only the classes below (and document store
failures) reach the application error handlers.
"""

from fastapi import status


class CatalogError(Exception):
    """Base class for catalog errors rendered by the generic error page."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    """The requested identifier has no matching document."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier
