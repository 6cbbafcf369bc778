"""OpenAI Assistants v2 gateway.

Talks to ``https://api.openai.com/v1`` by default. Because the coopbrain
proxy mirrors the upstream paths under ``/api``, the same client also works
against a running proxy by pointing ``base_url`` at it.
"""

import logging

import httpx

from ..errors import GatewayError
from ..gateway import AssistantGateway

logger = logging.getLogger(__name__)

BETA_HEADER = "assistants=v2"
DEFAULT_TIMEOUT = 30.0


class OpenAIGateway(AssistantGateway):
    """Gateway for the OpenAI Assistants API."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"OpenAI-Beta": BETA_HEADER}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def create_thread(self) -> dict:
        return await self._request("POST", "/threads", json={}, error="Failed to create thread")

    async def add_message(self, thread_id: str, content: str) -> dict:
        return await self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": content},
            error="Failed to add message",
        )

    async def create_run(self, thread_id: str, assistant_id: str) -> dict:
        return await self._request(
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": assistant_id},
            error="Failed to run assistant",
        )

    async def get_run(self, thread_id: str, run_id: str) -> dict:
        return await self._request(
            "GET", f"/threads/{thread_id}/runs/{run_id}", error="Failed to get run status"
        )

    async def list_messages(self, thread_id: str) -> dict:
        return await self._request(
            "GET", f"/threads/{thread_id}/messages", error="Failed to get messages"
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Private helpers ──────────────────────────────────────────────

    async def _request(self, method: str, path: str, *, error: str, json: dict | None = None) -> dict:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise GatewayError(500, "Internal server error") from e

        if resp.is_error:
            raise GatewayError(resp.status_code, _error_message(resp, error))

        try:
            return resp.json()
        except ValueError as e:
            logger.error("%s %s returned a non-JSON body", method, path)
            raise GatewayError(502, "Invalid response from assistant API") from e


def _error_message(resp: httpx.Response, default: str) -> str:
    """Extract the upstream error message, falling back to ``default``.

    Accepts both the upstream shape ``{"error": {"message": ...}}`` and the
    proxy shape ``{"error": "..."}``.
    """
    try:
        body = resp.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default

    err = body.get("error")
    if isinstance(err, dict):
        return err.get("message") or default
    if isinstance(err, str) and err:
        return err
    return default
