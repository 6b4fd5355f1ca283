# Language-model backends: direct Ollama HTTP calls and the provider-agnostic "AI manager" path
# aiplacement/services/llm_client.py
from typing import Dict, List
import threading

import httpx
import openai
import requests
from fastapi.concurrency import run_in_threadpool
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI
from langchain_google_genai import ChatGoogleGenerativeAI

from aiplacement.models.enums import BackendKind, ChatRole
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger


class BackendError(Exception):
    """Base class for failures talking to a language-model backend."""


class BackendConnectionError(BackendError):
    """The backend could not be reached or did not answer in time."""


class BackendUnavailableError(BackendError):
    """No provider is configured to serve the request."""


class InvalidBackendResponse(BackendError):
    """The backend answered, but not with a chat completion."""


class OllamaBackend:
    """Talks to an Ollama server through its /api/chat endpoint."""

    name = BackendKind.OLLAMA.value

    def __init__(self, model: str, base_url: str | None = None, timeout: int | None = None,
                 temperature: float = 0.7):
        self.model = model
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout_s
        self.temperature = temperature

    def _post_chat(self, messages: List[Dict[str, str]]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": self.temperature, "top_p": 0.9, "top_k": 40},
        }
        try:
            response = requests.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise BackendConnectionError(f"Ollama connection failed: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise InvalidBackendResponse("Invalid Ollama response") from e

        content = (result.get("message") or {}).get("content") if isinstance(result, dict) else None
        if content is None:
            error = result.get("error") if isinstance(result, dict) else None
            raise InvalidBackendResponse(error or "Invalid Ollama response")
        return content

    async def chat(self, messages: List[Dict[str, str]]) -> str:
        logger.debug(f"Sending {len(messages)} messages to Ollama model '{self.model}' at {self.base_url}")
        return await run_in_threadpool(self._post_chat, messages)

    def check_health(self) -> dict:
        """Lists the models the Ollama server has pulled."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=10)
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Ollama health check failed: {e}")
            return {"status": "error", "message": str(e)}
        models = [model["name"] for model in result.get("models", []) if "name" in model]
        return {"status": "ok", "models": models}


# --- LangChain clients are built lazily, one per (provider, model, temperature) ---
_manager_clients = {}
_init_lock = threading.Lock()


def _build_manager_client(model: str, temperature: float):
    provider = settings.manager_provider
    if provider == "ollama":
        return ChatOllama(base_url=settings.ollama_base_url, model=model, temperature=temperature)
    if provider == "openai":
        if not settings.openai_api_key:
            raise BackendUnavailableError("MANAGER_PROVIDER is 'openai' but OPENAI_API_KEY is not set")
        return ChatOpenAI(api_key=settings.openai_api_key, model=settings.openai_model_name,
                          temperature=temperature, timeout=settings.request_timeout_s, max_retries=0)
    if provider == "google":
        if not settings.google_api_key:
            raise BackendUnavailableError("MANAGER_PROVIDER is 'google' but GOOGLE_API_KEY is not set")
        return ChatGoogleGenerativeAI(google_api_key=settings.google_api_key, model=settings.google_model_name,
                                      temperature=temperature, max_output_tokens=settings.max_output_tokens)
    raise BackendUnavailableError(f"No AI provider configured (MANAGER_PROVIDER='{provider}')")


def _get_manager_client(model: str, temperature: float):
    key = (settings.manager_provider, model, temperature)
    with _init_lock:
        client = _manager_clients.get(key)
        if client is None:
            logger.info(f"Initializing AI manager client for provider: {settings.manager_provider}")
            client = _build_manager_client(model, temperature)
            _manager_clients[key] = client
    return client


def to_langchain_messages(messages: List[Dict[str, str]]) -> list:
    converted = []
    for message in messages:
        role, content = message["role"], message["content"]
        if role == ChatRole.SYSTEM.value:
            converted.append(SystemMessage(content=content))
        elif role == ChatRole.ASSISTANT.value:
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


class ManagerBackend:
    """
    Dispatches to whichever chat provider is configured, the way an LMS
    "AI manager" hides the provider from the placement asking for text.
    """

    name = BackendKind.MANAGER.value

    def __init__(self, model: str, temperature: float = 0.7):
        self.model = model
        self.temperature = temperature

    async def chat(self, messages: List[Dict[str, str]]) -> str:
        client = _get_manager_client(self.model, self.temperature)
        try:
            result = await client.ainvoke(to_langchain_messages(messages))
        except (ConnectionError, TimeoutError, httpx.TransportError, openai.APIConnectionError) as e:
            # httpx errors come from the Ollama client, APIConnectionError wraps them for OpenAI.
            raise BackendConnectionError(f"AI provider connection failed: {e}") from e
        except BackendError:
            raise
        except Exception as e:
            # Provider SDKs raise their own error types; treat them all as a failed generation.
            logger.exception(f"AI provider '{settings.manager_provider}' failed to generate text: {e}")
            raise BackendUnavailableError(f"AI provider error: {e}") from e

        content = getattr(result, "content", result)
        if isinstance(content, list):
            # Some providers return content blocks instead of a plain string.
            content = "".join(block.get("text", "") if isinstance(block, dict) else str(block) for block in content)
        if not isinstance(content, str):
            raise InvalidBackendResponse("AI provider returned no text")
        return content


def build_backend(kind: str, model: str, temperature: float):
    if kind == BackendKind.OLLAMA.value:
        return OllamaBackend(model=model, temperature=temperature)
    if kind == BackendKind.MANAGER.value:
        return ManagerBackend(model=model, temperature=temperature)
    raise ValueError(f"Unsupported backend: {kind}")


# --- FastAPI dependencies, one per placement so tests can override them separately ---
def get_chat_backend():
    return build_backend(settings.chat_backend, settings.chat_model, settings.chat_temperature)


def get_quizgen_backend():
    return build_backend(settings.quizgen_backend, settings.quizgen_model, settings.quizgen_temperature)


def get_textprocessor_backend():
    return build_backend(settings.textprocessor_backend, settings.textprocessor_model, 0.2)
