from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..deps import get_tutor_service
from ..schemas import ChatIn, ChatMessage, TeacherRequestParams
from ..utils.exceptions import MalformedRequestError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["chat"])

INTERNAL_ERROR = {"error": "Internal Server Error"}


async def _parse_body(request: Request) -> ChatIn:
    raw = await request.body()
    try:
        body = json.loads(raw or b"null")
    except ValueError as e:
        raise MalformedRequestError("Request body is not valid JSON") from e
    if not isinstance(body, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    try:
        return ChatIn.model_validate(body)
    except ValueError as e:
        raise MalformedRequestError("Request body has invalid fields") from e


@router.post("/chat")
async def chat(request: Request):
    try:
        payload = await _parse_body(request)
        service = get_tutor_service(request)
        trace_header = service.settings.trace_header
        params = TeacherRequestParams(
            native_language=payload.native_language,
            target_language=payload.target_language,
            difficulty=payload.difficulty,
            messages=[ChatMessage(role="user", content=payload.message)],
            trace_id=request.headers.get(trace_header) or None,
        )
        result = await service.get_teacher_response(params)
    except Exception as e:
        logger.error(f"API Error: {e}", exc_info=True)
        return JSONResponse(INTERNAL_ERROR, status_code=500)
    return {"data": result.raw}
