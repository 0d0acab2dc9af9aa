from __future__ import annotations

from typing import Dict, List, Union

from fastapi import APIRouter, Request


router = APIRouter(tags=["system"])


@router.get("/health")
def health(request: Request) -> Dict[str, Union[str, List[str]]]:
    service = getattr(request.app.state, "tutor_service", None)
    references = service.references.languages() if service is not None else []
    return {"status": "ok", "references": references}
