from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from ..settings import TutorSettings
from ..utils.exceptions import CompletionError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_response(cls, usage: Optional[Dict[str, Any]]) -> "TokenUsage":
        """Read provider usage counts; anything missing counts as zero."""
        if not isinstance(usage, dict):
            return cls()
        return cls(
            prompt_tokens=int(usage.get("prompt_tokens") or 0),
            completion_tokens=int(usage.get("completion_tokens") or 0),
            total_tokens=int(usage.get("total_tokens") or 0),
        )

    def as_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class CompletionResult:
    """Provider response for one chat completion, kept as returned."""

    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def choices(self) -> List[Dict[str, Any]]:
        choices = self.raw.get("choices")
        return choices if isinstance(choices, list) else []

    @property
    def usage(self) -> TokenUsage:
        return TokenUsage.from_response(self.raw.get("usage"))

    @property
    def model(self) -> Optional[str]:
        return self.raw.get("model")

    @property
    def text(self) -> str:
        for choice in self.choices:
            msg = choice.get("message") if isinstance(choice, dict) else None
            if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                return msg["content"]
        return ""


class CompletionClient:
    """OpenAI-compatible chat completion client over httpx.

    No retries: a failed call surfaces immediately as CompletionError.
    """

    def __init__(self, settings: TutorSettings, http: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http = http
        self._owns_http = http is None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=float(self.settings.timeout))
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def create(
        self,
        messages: List[Dict[str, str]],
        *,
        model: Optional[str] = None,
        model_parameters: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ) -> CompletionResult:
        api_key = self.settings.api_key
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY not set", config_key="OPENAI_API_KEY")

        url = f"{self.settings.base_url.rstrip('/')}/chat/completions"
        data: Dict[str, Any] = {
            "model": model or self.settings.model,
            "messages": messages,
        }
        data.update(model_parameters or {})

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        if trace_id:
            headers[self.settings.trace_header] = trace_id

        logger.info(
            f"Calling completion API with model: {data['model']}, messages count: {len(messages)}"
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request data: {json.dumps(data, ensure_ascii=False)[:500]}")

        try:
            resp = await self._client().post(url, json=data, headers=headers)
            resp.raise_for_status()
            resp_dict = resp.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"Completion API returned HTTP {status_code}: {e}")
            raise CompletionError(
                f"Completion API returned HTTP {status_code}",
                provider=self.settings.provider,
                status_code=status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Completion API request failed: {e}")
            raise CompletionError(
                "Completion API request failed", provider=self.settings.provider
            ) from e

        if not isinstance(resp_dict, dict) or not isinstance(resp_dict.get("choices"), list):
            raise CompletionError("no choices in response", provider=self.settings.provider)

        return CompletionResult(raw=resp_dict)
