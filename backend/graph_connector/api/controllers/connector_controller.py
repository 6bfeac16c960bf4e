import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError as PydanticValidationError
from starlette import status

from graph_connector.core.exceptions import (
    AppException,
    AuthExchangeError,
    ValidationError,
)
from graph_connector.schemas.connector import FileSearchResponse, SearchRequest
from graph_connector.services.search_service import SearchService
from graph_connector.services.token_exchange_service import TokenExchangeService

logger = logging.getLogger(__name__)

MISSING_SEARCH_TERM = "Missing searchTerm parameter."
MISSING_AUTHORIZATION = "Authorization header is missing"
MALFORMED_AUTHORIZATION = "Authorization header is malformed"


class ConnectorController:
    def __init__(
        self,
        token_service: TokenExchangeService,
        search_service: SearchService,
    ) -> None:
        self.token_service = token_service
        self.search_service = search_service
        self.error_class = AppException

    def _success(
        self,
        data: str | FileSearchResponse,
        status_code: int = status.HTTP_200_OK,
    ) -> JSONResponse:
        payload: Any = data.to_payload() if isinstance(data, FileSearchResponse) else data
        return JSONResponse(status_code=status_code, content=payload)

    def _error(
        self, message: Any = "Error", status_code: int | None = None
    ) -> PlainTextResponse:
        code = status_code
        if isinstance(message, self.error_class):
            exc = message
            if code is None:
                code = exc.status_code
            message = exc.message

        code = code if code is not None else status.HTTP_400_BAD_REQUEST
        return PlainTextResponse(status_code=int(code), content=str(message))

    async def _resolve_search_term(
        self, request: Request, search_term: str | None
    ) -> str:
        if search_term:
            return search_term

        body = await request.body()
        if body:
            try:
                term = SearchRequest.model_validate_json(body).searchTerm
            except PydanticValidationError:
                term = ""
            if term:
                return term

        raise ValidationError(MISSING_SEARCH_TERM)

    @staticmethod
    def _bearer_token(authorization: str | None) -> str:
        if not authorization:
            raise ValidationError(MISSING_AUTHORIZATION)
        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise ValidationError(MALFORMED_AUTHORIZATION)
        return parts[1]

    async def search_files(
        self,
        request: Request,
        search_term: str | None,
        authorization: str | None,
    ) -> Response:
        """Exchange the caller's token, search their files and return the contents"""
        logger.info(f'Http function processed request for url "{request.url}"')

        try:
            term = await self._resolve_search_term(request, search_term)
            user_token = self._bearer_token(authorization)
        except ValidationError as e:
            return self._error(message=e)

        try:
            access_token = await self.token_service.exchange(user_token)
        except AuthExchangeError as e:
            return self._error(
                message=f"Failed to obtain OBO token: {e.message}",
                status_code=e.status_code,
            )

        try:
            result = await self.search_service.run(access_token, term)
        except AppException as e:
            return self._error(
                message=f"Error performing search or processing results: {e.message}",
                status_code=e.status_code,
            )
        except Exception as e:
            logger.exception(f"Unexpected error while searching for '{term}'")
            return self._error(
                message=f"Error performing search or processing results: {e}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return self._success(data=result)
