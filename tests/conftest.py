"""
Shared fixtures for the tutor test suite.

Only external collaborators are faked: the completion provider, the PDF
loader and the telemetry sink. Prompt building, caching and routing run
for real.
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tutor.llm.client import CompletionResult
from tutor.main import create_app
from tutor.services.reference_cache import ReferenceCache
from tutor.services.references import ReferenceRegistry
from tutor.services.tracing import TutorObserver
from tutor.services.tutor_service import TutorService
from tutor.settings import TutorSettings


KLINGON_TEXT = "nuqneH hello what do you want Qapla' success"

SAMPLE_COMPLETION: Dict[str, Any] = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "created": 1700000000,
    "model": "gpt-4o-mini",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Bonjour ! Comment ça va ?"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 120, "completion_tokens": 9, "total_tokens": 129},
}


class FakeCompletionClient:
    """Stands in for CompletionClient; records every call."""

    def __init__(self, response: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.response = response if response is not None else copy.deepcopy(SAMPLE_COMPLETION)
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def create(self, messages, *, model=None, model_parameters=None, trace_id=None):
        self.calls.append(
            {
                "messages": copy.deepcopy(messages),
                "model": model,
                "model_parameters": dict(model_parameters or {}),
                "trace_id": trace_id,
            }
        )
        if self.error is not None:
            raise self.error
        return CompletionResult(raw=copy.deepcopy(self.response))

    async def aclose(self):
        self.closed = True


class RecordingObserver(TutorObserver):
    """Keeps (hook, args) tuples in call order."""

    def __init__(self):
        self.events: List[tuple] = []

    def hooks(self) -> List[str]:
        return [name for name, _ in self.events]

    def args_for(self, hook: str) -> List[tuple]:
        return [args for name, args in self.events if name == hook]

    async def on_request_start(self, trace):
        self.events.append(("on_request_start", (trace,)))

    async def on_reference_fetched(self, trace, name, input, output):
        self.events.append(("on_reference_fetched", (trace, name, input, output)))

    async def on_generation_requested(self, trace, generation_id, model, messages, model_parameters, provider):
        self.events.append(
            ("on_generation_requested", (trace, generation_id, model, messages, model_parameters, provider))
        )

    async def on_generation_completed(self, trace, generation_id, model, choices, usage):
        self.events.append(("on_generation_completed", (trace, generation_id, model, choices, usage)))

    async def on_generation_failed(self, trace, generation_id, error):
        self.events.append(("on_generation_failed", (trace, generation_id, error)))

    async def on_request_end(self, trace):
        self.events.append(("on_request_end", (trace,)))


@pytest.fixture
def settings(tmp_path: Path) -> TutorSettings:
    return TutorSettings(
        api_key="test-key",
        base_url="https://llm.test/v1",
        model="gpt-4o-mini",
        provider="openai",
        temperature=0.7,
        trace_header="maxim-trace-id",
        data_dir=str(tmp_path),
        references={"klingon": {"name": "klingon-dictionary", "path": "klingon.pdf"}},
        telemetry_url="",
    )


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def pdf_loader() -> AsyncMock:
    return AsyncMock(return_value=KLINGON_TEXT)


@pytest.fixture
def service(settings, completion_client, observer, pdf_loader) -> TutorService:
    return TutorService(
        completion_client,
        settings=settings,
        references=ReferenceRegistry.from_config(settings.references, settings.data_dir),
        cache=ReferenceCache(loader=pdf_loader),
        observer=observer,
    )


@pytest.fixture
def client(service):
    """FastAPI test client wired to the fake-backed service."""
    app = create_app()
    app.state.tutor_service = service
    with TestClient(app) as test_client:
        yield test_client
