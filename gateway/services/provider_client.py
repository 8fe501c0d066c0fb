"""
PROVIDER CLIENT
===============

Sends a NormalizedRequest to the generative-AI provider and returns a
ProviderResult. One shared httpx.AsyncClient carries the bearer token for every
call; the token comes from Settings (read once at startup) and is not checked
here. A missing key simply gets a 401 from the provider, which is relayed.

RESPONSE BODY TAGGING (decided once, here):
  - speech success             -> BinaryBody(audio bytes, audio/mpeg)
  - JSON endpoint, JSON body   -> JsonBody(parsed)
  - anything that isn't JSON   -> BinaryBody(raw bytes, provider content type)

No retries, no client-side timeout (httpx would otherwise cut reads at 5s), no
circuit breaking: one request in, one ProviderResult out.
"""

import logging
from typing import Optional

import httpx

from config import BINARY_CAPABILITIES, PROVIDER_ENDPOINTS, SPEECH_MEDIA_TYPE, Settings
from gateway.models import (
    BinaryBody,
    JsonBody,
    NormalizedRequest,
    Outcome,
    ProviderResponseBody,
    ProviderResult,
)

logger = logging.getLogger("GATEWAY")


class ProviderClient:
    """Thin async client for the provider's REST API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            settings: Startup configuration (API key, base URL).
            transport: Optional httpx transport; tests pass httpx.MockTransport.
        """
        self._base_url = settings.provider_base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
            # Wait as long as the provider takes.
            timeout=None,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, request: NormalizedRequest) -> ProviderResult:
        """
        POST request.payload to the capability's endpoint.

        Transport errors (DNS, refused connection, timeouts) do not raise; they
        come back as a transport_failure result with a synthesized 500.
        """
        path = PROVIDER_ENDPOINTS.get(request.capability)
        if path is None:
            raise ValueError(f"No provider endpoint for capability {request.capability.value}")

        logger.info("-> provider %s (%s, model=%s)", path, request.capability.value, request.model)
        logger.debug("Provider request body: %s", request.payload)

        try:
            response = await self._client.post(path, json=request.payload)
        except httpx.RequestError as e:
            logger.error("Provider unreachable at %s%s: %s", self._base_url, path, e)
            return ProviderResult.transport_failure(str(e) or type(e).__name__)

        binary = request.capability in BINARY_CAPABILITIES
        outcome = Outcome.SUCCESS if response.is_success else Outcome.PROVIDER_FAILURE
        body = self._tag_body(response, binary=binary and response.is_success)

        if outcome is Outcome.SUCCESS:
            logger.info("<- provider %s status %s", path, response.status_code)
        else:
            logger.warning("<- provider %s error status %s", path, response.status_code)
        if isinstance(body, JsonBody):
            logger.debug("Provider response body: %s", body.value)

        return ProviderResult(outcome=outcome, status_code=response.status_code, body=body)

    @staticmethod
    def _tag_body(response: httpx.Response, binary: bool) -> ProviderResponseBody:
        content_type = response.headers.get("content-type", "")
        if binary:
            return BinaryBody(response.content, SPEECH_MEDIA_TYPE)
        try:
            return JsonBody(response.json())
        except ValueError:
            return BinaryBody(response.content, content_type or "application/octet-stream")
