"""
Agent service client library for the console client.

Every call carries the user's bearer token and is classified into a
decoded result or one of the ``DispatchError`` subclasses.
"""

import json
from typing import Any, List, Optional

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import APIError, DecodeError, TransportError
from .models import (
    AgentResponse,
    ConversationMetadata,
    ErrorResponse,
    SendMessageRequest,
    UserProfile,
)

logger = structlog.get_logger()

CONVERSATION_LIST = TypeAdapter(List[ConversationMetadata])


class AgentClient:
    """Authenticated JSON client for the agent service."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the agent service client.

        Args:
            base_url: Base URL of the agent service
            access_token: Bearer token sent with every request
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not access_token:
            raise ValueError("access_token must not be empty")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        result_type: Optional[Any] = None,
    ) -> Any:
        """
        Perform one authenticated request against the agent service.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            body: Pydantic model or JSON-serializable value to send, if any
            result_type: Pydantic model or TypeAdapter to decode the response into

        Returns:
            Decoded response, or None when no result type is given

        Raises:
            TransportError: If the request could not be completed
            APIError: If the service returned a status code of 400 or above
            DecodeError: If the response body does not match result_type
        """
        content = None
        if body is not None:
            if isinstance(body, BaseModel):
                content = body.model_dump_json(by_alias=True, exclude_none=True)
            else:
                content = json.dumps(body)

        logger.debug("Sending agent service request", method=method, path=path)

        try:
            response = await self.client.request(method, path, content=content)
        except httpx.TimeoutException as e:
            logger.warning(
                "Timeout waiting for agent service response",
                method=method,
                path=path,
                timeout=self.timeout,
            )
            raise TransportError(
                f"request timed out after {self.timeout}s", timeout=True
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                "Agent service request failed",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TransportError(f"request failed: {e}") from e

        if response.status_code >= 400:
            raise self._api_error(response)

        if result_type is None:
            return None
        if not response.content:
            raise DecodeError(f"empty response body from {method} {path}")

        try:
            if isinstance(result_type, TypeAdapter):
                return result_type.validate_json(response.content)
            return result_type.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(f"failed to decode response: {e}") from e

    def _api_error(self, response: httpx.Response) -> APIError:
        try:
            parsed = ErrorResponse.model_validate_json(response.content)
        except ValidationError:
            parsed = None

        if parsed is not None and parsed.message is not None:
            error = APIError(response.status_code, parsed.message, parsed.error)
        else:
            error = APIError(response.status_code, response.text)

        logger.warning(
            "Agent service returned error",
            method=response.request.method,
            path=response.request.url.path,
            status_code=error.status,
            error=error.error,
        )
        return error

    async def send_message(
        self, message: str, thread_id: Optional[str] = None
    ) -> AgentResponse:
        """
        Send a chat message to the agent.

        Args:
            message: The user's message
            thread_id: Thread to continue, or None to start a new one

        Returns:
            AgentResponse carrying the thread id to use for the next message
        """
        request = SendMessageRequest(message=message, thread_id=thread_id)
        return await self.call("POST", "/api/agent/send", request, AgentResponse)

    async def get_profile(self) -> UserProfile:
        return await self.call("GET", "/api/profile", result_type=UserProfile)

    async def update_profile(self, profile: UserProfile) -> None:
        await self.call("PUT", "/api/profile", profile)

    async def list_conversations(self) -> List[ConversationMetadata]:
        """List the user's conversations in the order the service returns them."""
        return await self.call(
            "GET", "/api/agent/conversations", result_type=CONVERSATION_LIST
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "AgentClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
