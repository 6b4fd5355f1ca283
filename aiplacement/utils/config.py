# aiplacement/utils/config.py
import os
from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file before defining settings
load_dotenv()

class Settings(BaseSettings):
    # Database and logging
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./aiplacement.db")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # --- Backend selection per placement ("ollama" or "manager") ---
    chat_backend: str = os.getenv("CHAT_BACKEND", "ollama").lower()
    quizgen_backend: str = os.getenv("QUIZGEN_BACKEND", "ollama").lower()
    textprocessor_backend: str = os.getenv("TEXTPROCESSOR_BACKEND", "manager").lower()

    # Ollama specific
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    chat_model: str = os.getenv("CHAT_MODEL", "llama3.1")
    quizgen_model: str = os.getenv("QUIZGEN_MODEL", "qwen2.5:7b")
    textprocessor_model: str = os.getenv("TEXTPROCESSOR_MODEL", "llama3.1")
    request_timeout_s: int = 120 # One outbound call per request, no retries

    # --- AI manager provider ("ollama", "openai", "google" or "none") ---
    manager_provider: str = os.getenv("MANAGER_PROVIDER", "ollama").lower()

    # OpenAI specific
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model_name: str = os.getenv("OPENAI_MODEL_NAME", "gpt-4o-mini")

    # Google Gemini specific
    google_api_key: str | None = os.getenv("GOOGLE_API_KEY")
    google_model_name: str = os.getenv("GOOGLE_MODEL_NAME", "gemini-1.5-flash-latest")
    max_output_tokens: int = 2048

    # Course chat
    chat_enabled: bool = True
    context_sources: List[str] = ["sections", "activities", "files"]
    max_context_length: int = 8000
    max_history: int = 50
    chat_temperature: float = 0.7

    # Quiz generator
    quizgen_enabled: bool = True
    max_questions: int = 20
    quizgen_temperature: float = 0.4
    default_language: str = "en"

    # Text processor
    textprocessor_enabled: bool = True
    textprocessor_disabled_actions: List[str] = []

    # File extraction limits
    max_extracted_length: int = 50000
    max_cached_extract_length: int = 2000

    class Config:
        # Values from the environment override the defaults above
        # (e.g. MAX_CONTEXT_LENGTH=4000, CONTEXT_SOURCES='["sections","grades"]').
        case_sensitive = False

settings = Settings()
