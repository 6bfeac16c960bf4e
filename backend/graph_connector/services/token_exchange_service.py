import logging
from typing import Any

import httpx

from graph_connector.core.config import Settings
from graph_connector.core.exceptions import AuthExchangeError

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class TokenExchangeService:
    """Exchanges a user's bearer token for a Graph token via the on-behalf-of flow."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport

    def _form(self, user_access_token: str) -> dict[str, str]:
        return {
            "client_id": self.settings.CLIENT_ID,
            "client_secret": self.settings.CLIENT_SECRET,
            "grant_type": JWT_BEARER_GRANT,
            "assertion": user_access_token,
            "requested_token_use": "on_behalf_of",
            "scope": self.settings.GRAPH_SCOPE,
        }

    async def exchange(self, user_access_token: str) -> str:
        """
        Obtain a delegated Graph access token for the caller.

        Args:
            user_access_token: The caller's bearer token, used as the OBO assertion

        Returns:
            The access token issued by the identity provider, unmodified

        Raises:
            AuthExchangeError: If the token endpoint rejects the assertion,
                returns no token, or cannot be reached
        """
        if not user_access_token:
            raise AuthExchangeError("User access token is required")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.HTTP_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                response = await client.post(
                    self.settings.token_endpoint,
                    data=self._form(user_access_token),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.TimeoutException:
            logger.error("Token endpoint request timed out")
            raise AuthExchangeError("Token request timed out")
        except httpx.HTTPError as e:
            logger.error(f"Error obtaining OBO token: {e}")
            raise AuthExchangeError(f"Token endpoint unreachable: {e}")

        if response.status_code != 200:
            logger.error(
                f"Error obtaining OBO token: {response.status_code} - {response.text}"
            )
            raise AuthExchangeError(
                self._describe_failure(response), details=self._error_payload(response)
            )

        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            logger.error(f"Token endpoint returned non-JSON body: {response.text}")
            raise AuthExchangeError("Token endpoint returned an invalid response")

        access_token = data.get("access_token")
        if not access_token:
            logger.error("Token endpoint response did not include an access token")
            raise AuthExchangeError("Token endpoint returned no access token")
        return str(access_token)

    @staticmethod
    def _error_payload(response: httpx.Response) -> dict[str, Any] | None:
        try:
            payload = response.json()
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    def _describe_failure(self, response: httpx.Response) -> str:
        message = f"Request failed with status code {response.status_code}"
        payload = self._error_payload(response)
        if payload and payload.get("error"):
            message = f"{message} ({payload['error']})"
        return message
