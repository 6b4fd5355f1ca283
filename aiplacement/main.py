# FastAPI entry point; wires the chat, quiz generator and text processor placements
# aiplacement/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from aiplacement.endpoints import (
    chat as chat_router,
    quizgen as quizgen_router,
    textprocessor as textprocessor_router,
    courses as courses_router,
)
from aiplacement.services.llm_client import OllamaBackend
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger
from aiplacement.utils.db import engine
from aiplacement.models.course import Base
import aiplacement.models.log  # noqa: F401  registers chat_logs and file_cache on Base

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logger.info("AI Placements API starting up...")

    # Create database tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Chat backend: {settings.chat_backend} ({settings.chat_model}), "
                f"quiz backend: {settings.quizgen_backend} ({settings.quizgen_model}), "
                f"text processor backend: {settings.textprocessor_backend}")
    logger.info("Startup complete.")
    yield
    # On shutdown
    logger.info("AI Placements API shutting down...")
    await engine.dispose()

# --- FastAPI App Initialization ---
app = FastAPI(
    title="AI Placements API",
    description="Course chat, quiz generation and text formatting backed by a language model.",
    version="1.0.0",
    lifespan=lifespan
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this to the LMS domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Routers ---
app.include_router(chat_router.router, prefix="/chat", tags=["Chat"])
app.include_router(quizgen_router.router, prefix="/quizgen", tags=["Quiz Generator"])
app.include_router(textprocessor_router.router, prefix="/textprocessor", tags=["Text Processor"])
app.include_router(courses_router.router, prefix="/courses")

# --- Root Endpoint ---
@app.get("/")
async def root():
    return {"message": "Welcome to the AI Placements API"}

@app.get("/health")
def health():
    """Reports whether the Ollama server answers and which models it has."""
    return OllamaBackend(model=settings.chat_model).check_health()
