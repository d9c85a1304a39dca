"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse_ai.api.endpoints.chat import router as chat_router
from pulse_ai.api.endpoints.resources import router as resources_router
from pulse_ai.core.config import settings
from pulse_ai.core.errors import register_exception_handlers
from pulse_ai.core.logging import RequestIdMiddleware, configure_logging
from pulse_ai.services.resource_store import close_resource_store

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting %s (chat_model=%s fallback_model=%s store=%s)",
        settings.PROJECT_NAME,
        settings.GEMINI_CHAT_MODEL,
        settings.GEMINI_FALLBACK_MODEL,
        settings.RESOURCE_STORE_BACKEND,
    )
    yield
    await close_resource_store()
    logger.info("Shutting down %s", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Knowledge-base chat and content drafting for employees",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(chat_router, prefix=settings.API_STR)
app.include_router(resources_router, prefix=settings.API_STR)


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME, "status": "running"}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "resource_store": settings.RESOURCE_STORE_BACKEND,
        "chat_models": [settings.GEMINI_CHAT_MODEL, settings.GEMINI_FALLBACK_MODEL],
    }
