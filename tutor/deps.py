from __future__ import annotations

from fastapi import Request

from .services.tutor_service import TutorService


def get_tutor_service(request: Request) -> TutorService:
    service = getattr(request.app.state, "tutor_service", None)
    if service is None:
        raise RuntimeError("Tutor service is not initialized")
    return service
