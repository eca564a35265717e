import asyncio
import json
import logging
import time
from typing import Optional
from urllib.parse import urlencode

import httpx

from config.config import Config
from contracts.errors import RequestBuildError, ResponseMismatchError, TransportError
from contracts.probe import ProbeDefinition
from contracts.probe_result import (
    FailureReason,
    ProbeFailure,
    ProbeResult,
    ProbeSuccess,
)
from core.profiler import Profiler

logger = logging.getLogger(__name__)

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"
USER_AGENT = "User-Agent"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


class ProbeExecutor:
    """
    Builds and performs one HTTP request per probe execution and classifies
    the outcome.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: Optional[str] = None,
        snippet_limit: Optional[int] = None,
    ):
        self.client = client
        self.user_agent = user_agent or Config.DEFAULT_USER_AGENT
        self.snippet_limit = snippet_limit or Config.RESPONSE_SNIPPET_LIMIT

    def build_request(self, definition: ProbeDefinition) -> httpx.Request:
        """
        Build the outbound request for a probe.

        Raises:
            RequestBuildError: If the headers, body or URL cannot be constructed.
        """
        try:
            headers = httpx.Headers(definition.headers)
            content = self._encode_body(definition, headers)
            if USER_AGENT not in headers:
                headers[USER_AGENT] = self.user_agent

            url = httpx.URL(definition.url)
            if definition.url_params:
                url = url.copy_with(query=urlencode(definition.url_params).encode())
            return self.client.build_request(
                definition.method,
                url,
                headers=headers,
                content=content,
                timeout=definition.timeout,
            )
        except RequestBuildError:
            raise
        except (httpx.InvalidURL, UnicodeEncodeError, ValueError, TypeError) as e:
            raise RequestBuildError(
                f"Invalid Request Config. Not able to create request: {e}"
            ) from e

    def _encode_body(self, definition: ProbeDefinition, headers: httpx.Headers) -> Optional[bytes]:
        if not definition.form_params:
            return None
        if headers.get(CONTENT_TYPE) == JSON_CONTENT_TYPE:
            try:
                return json.dumps(definition.form_params, allow_nan=False).encode()
            except (TypeError, ValueError) as e:
                raise RequestBuildError(
                    f"Invalid Parameters for Content-Type application/json : {e}"
                ) from e
        content = urlencode(definition.form_params).encode()
        headers[CONTENT_LENGTH] = str(len(content))
        if CONTENT_TYPE not in headers:
            headers[CONTENT_TYPE] = FORM_CONTENT_TYPE
        return content

    @Profiler.profile
    async def execute(self, definition: ProbeDefinition) -> ProbeResult:
        """
        Perform one probe. Never raises; every outcome is a ProbeResult.
        """
        try:
            request = self.build_request(definition)
        except RequestBuildError as e:
            logger.error(f"Probe {definition.id} could not build request for {definition.url}: {e}")
            return self._failure(definition, FailureReason.REQUEST_BUILD, str(e))

        start = time.perf_counter()
        try:
            # Deadline covers the whole exchange, body read included
            response = await asyncio.wait_for(self.client.send(request), definition.timeout)
        except asyncio.TimeoutError:
            error = TransportError(f"Request failed: timed out after {definition.timeout}s")
            logger.error(f"Probe {definition.id} transport error for {definition.url}: {error}")
            return self._failure(definition, FailureReason.TRANSPORT, str(error))
        except httpx.HTTPError as e:
            error = TransportError(f"Request failed: {e!r}")
            logger.error(f"Probe {definition.id} transport error for {definition.url}: {error}")
            return self._failure(definition, FailureReason.TRANSPORT, str(error))
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        if response.status_code != definition.expected_status:
            error = ResponseMismatchError(response.status_code, definition.expected_status)
            logger.error(f"Probe {definition.id} failed for {definition.url}: {error}")
            return self._failure(
                definition,
                FailureReason.RESPONSE_MISMATCH,
                str(error),
                status_code=response.status_code,
                response_body=response.text[: self.snippet_limit],
            )

        logger.info(
            f"Probe success for {definition.url}: status={response.status_code}, latency={elapsed_ms}ms"
        )
        return ProbeResult(
            probe_id=definition.id,
            outcome=ProbeSuccess(status_code=response.status_code, latency_ms=elapsed_ms),
        )

    def _failure(
        self,
        definition: ProbeDefinition,
        reason: FailureReason,
        message: str,
        status_code: int = 0,
        response_body: str = "",
    ) -> ProbeResult:
        return ProbeResult(
            probe_id=definition.id,
            outcome=ProbeFailure(
                status_code=status_code,
                reason=reason,
                message=message,
                response_body=response_body,
            ),
        )
