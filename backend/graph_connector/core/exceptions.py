from typing import Any

from starlette import status


class AppException(Exception):
    """Base error carrying the HTTP status it maps to at the request boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class ValidationError(AppException):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthExchangeError(AppException):
    """The identity provider rejected the on-behalf-of assertion or was unreachable."""


class SearchError(AppException):
    """The Graph search query failed."""


class FetchError(AppException):
    """Retrieving a single drive item's content or metadata failed."""

    def __init__(
        self,
        message: str,
        item_id: str | None = None,
        item_name: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, details=details)
        self.item_id = item_id
        self.item_name = item_name
