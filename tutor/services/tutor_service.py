from __future__ import annotations

import logging
from typing import Optional

from ..llm.client import CompletionClient, CompletionResult
from ..llm.prompts import build_conversation, build_system_prompt
from ..schemas import TeacherRequestParams
from ..settings import TutorSettings
from ..utils.exceptions import CompletionError
from .reference_cache import ReferenceCache
from .references import ReferenceRegistry
from .tracing import (
    HttpTraceSink,
    LoggingObserver,
    ObserverGroup,
    TraceContext,
    TutorObserver,
    convert_choices,
    new_id,
)

logger = logging.getLogger(__name__)


class TutorService:
    """
    Produces one teacher reply per request.

    This service handles:
    - Looking up reference material for the target language (cached)
    - Building the system prompt and the full conversation
    - Calling the completion provider
    - Notifying the telemetry observer at each lifecycle point

    It does NOT handle:
    - Request parsing or response shaping (handled by routes.chat)
    - Telemetry delivery (handled by the observer sinks)
    """

    def __init__(
        self,
        client: CompletionClient,
        *,
        settings: TutorSettings,
        references: Optional[ReferenceRegistry] = None,
        cache: Optional[ReferenceCache] = None,
        observer: Optional[TutorObserver] = None,
    ):
        self.client = client
        self.settings = settings
        self.references = references if references is not None else ReferenceRegistry()
        self.cache = cache if cache is not None else ReferenceCache()
        if not isinstance(observer, ObserverGroup):
            observer = ObserverGroup([observer] if observer is not None else [])
        self.observer = observer

    async def _reference_text(self, trace: TraceContext, target_language: str) -> str:
        document = self.references.lookup(target_language)
        if document is None:
            return ""
        text = await self.cache.get_reference_text(document)
        if not text:
            return ""
        await self.observer.on_reference_fetched(trace, document.name, target_language, text)
        return text

    async def get_teacher_response(self, params: TeacherRequestParams) -> CompletionResult:
        trace = TraceContext(id=params.trace_id or new_id())
        await self.observer.on_request_start(trace)
        try:
            reference_text = await self._reference_text(trace, params.target_language)
            system_prompt = build_system_prompt(
                params.native_language,
                params.target_language,
                params.difficulty,
                reference_text,
            )
            conversation = build_conversation(system_prompt, params.messages)

            model = self.settings.model
            model_parameters = self.settings.model_parameters
            generation_id = new_id()
            await self.observer.on_generation_requested(
                trace, generation_id, model, conversation, model_parameters, self.settings.provider
            )

            try:
                result = await self.client.create(
                    conversation,
                    model=model,
                    model_parameters=model_parameters,
                    trace_id=trace.id,
                )
            except Exception as e:
                logger.error(f"Error calling completion API: {e}", exc_info=True)
                await self.observer.on_generation_failed(trace, generation_id, e)
                raise CompletionError(
                    "Failed to get response from the completion provider",
                    provider=self.settings.provider,
                    status_code=getattr(e, "status_code", None),
                ) from e

            await self.observer.on_generation_completed(
                trace, generation_id, model, convert_choices(result.choices), result.usage
            )
            return result
        finally:
            await self.observer.on_request_end(trace)

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.observer.aclose()


def build_observer(settings: TutorSettings) -> ObserverGroup:
    group = ObserverGroup([LoggingObserver()])
    if settings.telemetry_url:
        group.add(
            HttpTraceSink(
                settings.telemetry_url,
                api_key=settings.telemetry_api_key,
                repo_id=settings.telemetry_repo_id,
                timeout=settings.telemetry_timeout,
            )
        )
    return group


def build_tutor_service(settings: TutorSettings) -> TutorService:
    return TutorService(
        CompletionClient(settings),
        settings=settings,
        references=ReferenceRegistry.from_config(settings.references, settings.data_dir),
        cache=ReferenceCache(),
        observer=build_observer(settings),
    )
