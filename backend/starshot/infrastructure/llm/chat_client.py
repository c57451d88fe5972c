"""OpenAI-compatible chat completions client (httpx).

Returns the raw assistant text; schema validation is the caller's job.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from starshot.infrastructure.logging.logging import get_logger
from starshot.infrastructure.utils.config import ForecastConfig

JsonDict = Dict[str, Any]


class LLMError(RuntimeError):
    pass


class ChatCompletionClient:
    def __init__(
        self,
        cfg: ForecastConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._logger = get_logger("llm", model=cfg.model)
        self._cfg = cfg
        self._transport = transport

    async def complete(self, system: str, prompt: str, *, json_mode: bool = True) -> str:
        payload: JsonDict = {
            "model": self._cfg.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._cfg.temperature,
            "max_tokens": self._cfg.max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._cfg.api_key}",
        }

        async with httpx.AsyncClient(timeout=self._cfg.timeout_seconds, transport=self._transport) as client:
            try:
                resp = await client.post(f"{self._cfg.base_url}/chat/completions", json=payload, headers=headers)
            except httpx.HTTPError as e:
                self._logger.warning("llm_connection_error", error=str(e))
                raise LLMError(f"Connection error: {e}") from e

        if resp.status_code != 200:
            self._logger.warning("llm_http_error", status=resp.status_code, body=resp.text[:200])
            raise LLMError(f"HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise LLMError("Invalid JSON body from completion endpoint") from e

        choices = body.get("choices") or []
        if not choices:
            raise LLMError("No choices in response")

        msg = choices[0].get("message") or {}
        # Reasoning models may leave content empty and answer in reasoning_content.
        content = msg.get("content") or msg.get("reasoning_content")
        if not content:
            raise LLMError("Empty response body")

        usage = body.get("usage") or {}
        self._logger.info("llm_completion_ok", total_tokens=usage.get("total_tokens"))
        return str(content).strip()
