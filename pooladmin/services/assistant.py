from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Error: the assistant API key is not configured."
CONNECTION_ERROR_MESSAGE = "Error connecting to the assistant. Check the server logs for details."
EMPTY_RESPONSE_MESSAGE = "The assistant could not generate a report."


class AssistantError(RuntimeError):
    pass


def build_system_prompt(state: Dict[str, Any], organization_name: str) -> str:
    return (
        f"Act as an expert administrator of the {organization_name}.\n"
        "You have access to the following data in JSON format (members, finances, inventory, maintenance log):\n"
        f"{json.dumps(state, default=str, ensure_ascii=False)}\n\n"
        "Your job is to answer questions about the state of the pool, produce financial reports, "
        "maintenance summaries or draft announcements for the members.\n"
        'Always refer to the organization as "the Board".\n'
        "Be concise, professional and helpful. Use Markdown in the answer.\n"
        "If you are asked for financial figures, compute them from the transaction list provided."
    )


class AssistantClient:
    """Single request/response call to the generative text API. No retries."""

    def __init__(self, config: Optional[Settings] = None, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config or default_settings
        self._timeout = httpx.Timeout(self.config.assistant_timeout_seconds)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.config.assistant_is_configured

    def _http_client(self) -> httpx.Client:
        if not self.is_configured:
            raise AssistantError("Assistant integration is not configured.")
        return httpx.Client(
            base_url=self.config.assistant_api_url.rstrip("/"),
            timeout=self._timeout,
            transport=self._transport,
        )

    def _payload(self, state: Dict[str, Any], prompt: str) -> Dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": build_system_prompt(state, self.config.organization_name)}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.config.assistant_temperature},
        }

    def generate(self, state: Dict[str, Any], prompt: str) -> str:
        path = f"/models/{self.config.assistant_model}:generateContent"
        with self._http_client() as client:
            response = client.post(path, params={"key": self.config.assistant_api_key}, json=self._payload(state, prompt))
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Assistant API error (%s): %s", exc.response.status_code, exc.response.text)
            raise AssistantError(f"Assistant API responded with {exc.response.status_code}") from exc
        try:
            data = response.json()
        except ValueError as exc:
            raise AssistantError("Unexpected response from assistant API (non-JSON).") from exc
        return _extract_text(data)


def _extract_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


def generate_pool_report(state: Dict[str, Any], prompt: str, client: Optional[AssistantClient] = None) -> str:
    """Return the assistant's answer, or an error string when anything goes wrong."""
    client = client or AssistantClient()
    if not client.is_configured:
        return NOT_CONFIGURED_MESSAGE
    try:
        text = client.generate(state, prompt)
    except (AssistantError, httpx.HTTPError):
        logger.exception("Assistant request failed")
        return CONNECTION_ERROR_MESSAGE
    return text or EMPTY_RESPONSE_MESSAGE
