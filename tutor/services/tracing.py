"""
Telemetry for tutor requests.

The response service notifies a TutorObserver at fixed lifecycle points;
sinks implement the observer. ObserverGroup wraps every notification so a
failing sink can never change the outcome of the request it observes.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..llm.client import TokenUsage
from ..utils.exceptions import TelemetryError

logger = logging.getLogger(__name__)
telemetry_logger = logging.getLogger("tutor.telemetry")


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class TraceContext:
    id: str = field(default_factory=new_id)
    name: str = "teacher-response"
    started_at: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


def parse_messages(messages: Iterable[Any]) -> List[Dict[str, str]]:
    """Normalize conversation entries (dicts or models) to role/content dicts."""
    out: List[Dict[str, str]] = []
    for msg in messages:
        if isinstance(msg, dict):
            role, content = msg.get("role"), msg.get("content")
        else:
            role, content = getattr(msg, "role", None), getattr(msg, "content", None)
        out.append({"role": str(role or ""), "content": "" if content is None else str(content)})
    return out


def convert_choices(choices: Iterable[Any]) -> List[Dict[str, Any]]:
    """Flatten provider choices into the shape recorded on a generation."""
    out: List[Dict[str, Any]] = []
    for idx, choice in enumerate(choices or []):
        if not isinstance(choice, dict):
            continue
        msg = choice.get("message") or {}
        out.append(
            {
                "index": choice.get("index", idx),
                "message": {
                    "role": msg.get("role", "assistant"),
                    "content": msg.get("content") or "",
                },
                "finish_reason": choice.get("finish_reason"),
                "logprobs": choice.get("logprobs"),
            }
        )
    return out


class TutorObserver:
    """Lifecycle hooks for one teacher response. All hooks default to no-ops."""

    async def on_request_start(self, trace: TraceContext) -> None:
        pass

    async def on_reference_fetched(
        self, trace: TraceContext, name: str, input: str, output: str
    ) -> None:
        pass

    async def on_generation_requested(
        self,
        trace: TraceContext,
        generation_id: str,
        model: str,
        messages: List[Dict[str, str]],
        model_parameters: Dict[str, Any],
        provider: str,
    ) -> None:
        pass

    async def on_generation_completed(
        self,
        trace: TraceContext,
        generation_id: str,
        model: str,
        choices: List[Dict[str, Any]],
        usage: TokenUsage,
    ) -> None:
        pass

    async def on_generation_failed(
        self, trace: TraceContext, generation_id: str, error: BaseException
    ) -> None:
        pass

    async def on_request_end(self, trace: TraceContext) -> None:
        pass

    async def aclose(self) -> None:
        pass


class EventObserver(TutorObserver):
    """Turns lifecycle hooks into flat event dicts handed to emit()."""

    async def emit(self, event: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def on_request_start(self, trace):
        await self.emit({"type": "trace.start", "trace_id": trace.id, "name": trace.name, "tags": trace.tags})

    async def on_reference_fetched(self, trace, name, input, output):
        await self.emit(
            {
                "type": "retrieval",
                "trace_id": trace.id,
                "id": new_id(),
                "name": name,
                "input": input,
                "output": output,
            }
        )

    async def on_generation_requested(self, trace, generation_id, model, messages, model_parameters, provider):
        await self.emit(
            {
                "type": "generation.start",
                "trace_id": trace.id,
                "id": generation_id,
                "model": model,
                "provider": provider,
                "messages": parse_messages(messages),
                "model_parameters": dict(model_parameters),
            }
        )

    async def on_generation_completed(self, trace, generation_id, model, choices, usage):
        await self.emit(
            {
                "type": "generation.result",
                "trace_id": trace.id,
                "id": generation_id,
                "result": {
                    "id": new_id(),
                    "object": "chat.completion",
                    "created": int(time.time() * 1000),
                    "model": model,
                    "choices": choices,
                    "usage": usage.as_dict(),
                },
            }
        )

    async def on_generation_failed(self, trace, generation_id, error):
        await self.emit(
            {
                "type": "generation.error",
                "trace_id": trace.id,
                "id": generation_id,
                "error": {"message": str(error), "type": type(error).__name__},
            }
        )

    async def on_request_end(self, trace):
        await self.emit(
            {
                "type": "trace.end",
                "trace_id": trace.id,
                "duration_ms": int((time.time() - trace.started_at) * 1000),
            }
        )


class LoggingObserver(EventObserver):
    """Writes each event as one structured log line."""

    def __init__(self, log: logging.Logger = telemetry_logger, level: int = logging.INFO):
        self.log = log
        self.level = level

    async def emit(self, event):
        summary = {k: v for k, v in event.items() if k not in ("messages", "output", "result")}
        self.log.log(self.level, f"{event['type']} {summary}", extra={"telemetry": event})


class HttpTraceSink(EventObserver):
    """Posts each event as one JSON document to a generic collector.

    The collector is any HTTP service accepting ``POST {base_url}/events``
    with a JSON body; this is not a vendor ingest API. Point
    TUTOR_TELEMETRY_URL at a small relay when forwarding to a hosted
    tracing product.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        repo_id: str = "",
        timeout: float = 5.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.url = f"{base_url.rstrip('/')}/events"
        self.api_key = api_key
        self.repo_id = repo_id
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http is None

    async def emit(self, event):
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = dict(event)
        if self.repo_id:
            payload["repo_id"] = self.repo_id
        try:
            resp = await self._http.post(self.url, json=payload, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise TelemetryError(f"Failed to send {event['type']} event: {e}", sink=self.url) from e

    async def aclose(self):
        if self._owns_http:
            await self._http.aclose()


class ObserverGroup(TutorObserver):
    """Fans notifications out to every observer; sink failures are logged and absorbed."""

    def __init__(self, observers: Optional[Iterable[TutorObserver]] = None):
        self.observers: List[TutorObserver] = list(observers or [])

    def add(self, observer: TutorObserver) -> None:
        self.observers.append(observer)

    async def _notify(self, hook: str, *args: Any) -> None:
        for observer in self.observers:
            try:
                await getattr(observer, hook)(*args)
            except Exception as e:
                logger.warning(f"Telemetry observer {type(observer).__name__}.{hook} failed: {e}")

    async def on_request_start(self, trace):
        await self._notify("on_request_start", trace)

    async def on_reference_fetched(self, trace, name, input, output):
        await self._notify("on_reference_fetched", trace, name, input, output)

    async def on_generation_requested(self, trace, generation_id, model, messages, model_parameters, provider):
        await self._notify(
            "on_generation_requested", trace, generation_id, model, messages, model_parameters, provider
        )

    async def on_generation_completed(self, trace, generation_id, model, choices, usage):
        await self._notify("on_generation_completed", trace, generation_id, model, choices, usage)

    async def on_generation_failed(self, trace, generation_id, error):
        await self._notify("on_generation_failed", trace, generation_id, error)

    async def on_request_end(self, trace):
        await self._notify("on_request_end", trace)

    async def aclose(self):
        await self._notify("aclose")
