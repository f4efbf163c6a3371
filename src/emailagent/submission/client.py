"""HTTP client for the remote automation service.

One ``POST {base}/agent/run`` per call, no retries and no local timeout:
the request lasts as long as the service takes to answer.  The underlying
``httpx.AsyncClient`` keeps cookies between calls so session credentials
issued by the service are sent back on every request.
"""

from __future__ import annotations

from types import TracebackType

import httpx
import structlog
from pydantic import ValidationError

from emailagent.config import Settings
from emailagent.domain.errors import AgentRequestError, AgentTransportError
from emailagent.domain.models import AgentResponse, AgentRunRequest

logger = structlog.get_logger()

RUN_PATH = "/agent/run"


class AgentClient:
    """Async client for the automation endpoint.

    Args:
        settings: Supplies the service base URL.
        http_client: Optional pre-built ``httpx.AsyncClient`` (tests pass one
                     backed by ``httpx.MockTransport``).  A client built here
                     is closed by ``aclose()``; an injected one is not.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = settings.api_url(RUN_PATH)
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=None)

    async def run(self, request: AgentRunRequest) -> AgentResponse:
        """Submit an instruction and return the service's response.

        Args:
            request: Instruction plus optional user email and name.

        Returns:
            The parsed ``AgentResponse`` of a 2xx answer.

        Raises:
            AgentRequestError: If the service answered with a non-2xx status.
            AgentTransportError: If no response arrived, or a 2xx body could
                not be parsed.
        """
        logger.info(
            "Sending agent run request",
            url=self._url,
            has_user=request.user_email is not None,
        )
        try:
            response = await self._http.post(
                self._url,
                json=request.model_dump(exclude_none=True),
            )
        except httpx.HTTPError as exc:
            logger.warning("Agent run request did not reach the service", error=str(exc))
            raise AgentTransportError(str(exc)) from exc

        if not response.is_success:
            raise self._request_error(response)

        try:
            return AgentResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.warning("Failed to parse agent run response", errors=exc.error_count())
            raise AgentTransportError(None) from exc

    @staticmethod
    def _request_error(response: httpx.Response) -> AgentRequestError:
        """Build the error for a non-2xx answer, keeping the body when it parses."""
        try:
            body = AgentResponse.model_validate_json(response.content)
        except ValidationError:
            logger.warning(
                "Agent run returned an error status",
                status_code=response.status_code,
                body="unparseable",
            )
            return AgentRequestError(None, response.status_code)
        logger.warning(
            "Agent run returned an error status",
            status_code=response.status_code,
            message=body.message,
        )
        return AgentRequestError(body.message, response.status_code, body)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> AgentClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
