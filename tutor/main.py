from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS
from .routes.chat import router as chat_router
from .routes.health import router as health_router
from .services.tutor_service import build_tutor_service
from .settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests install their own service before startup
    service = getattr(app.state, "tutor_service", None)
    owned = service is None
    if owned:
        settings = get_settings()
        if not settings.api_key:
            logger.warning("OPENAI_API_KEY not set; chat requests will fail")
        service = build_tutor_service(settings)
        app.state.tutor_service = service
        logger.info(f"Reference languages: {service.references.languages()}")

    yield

    if owned:
        await service.aclose()
        app.state.tutor_service = None


def create_app() -> FastAPI:
    app = FastAPI(lifespan=lifespan, title="Language Tutor", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(chat_router)
    return app


app = create_app()
