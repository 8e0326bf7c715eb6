"""Structured-generation backends. Supports Ollama (local) and OpenAI API."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import httpx

from sheet_intel.errors import ConfigurationError, RequestTimeout, TransportError

if TYPE_CHECKING:
    from sheet_intel.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "ollama": "llama3.2",
    "openai": "gpt-4o-mini",
}


@dataclass(frozen=True)
class GenerationRequest:
    """One structured-generation call."""

    model: str
    prompt: str
    system_instruction: str
    schema: dict[str, Any] = field(default_factory=dict)
    schema_name: str = "response"


class ModelBackend(ABC):
    """
    Text-generation backend returning JSON text for a requested schema.
    Implementations raise RequestTimeout on timeouts and TransportError on
    any other failure to obtain a response.
    """

    provider: str = ""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> str:
        """Run one request and return the raw response text."""
        pass


class OllamaBackend(ModelBackend):
    """Local Ollama server via its /api/generate endpoint."""

    provider = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        *,
        timeout: float = 120.0,
        client: Optional[httpx.Client] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def generate(self, request: GenerationRequest) -> str:
        payload = {
            "model": request.model,
            "prompt": request.prompt,
            "system": request.system_instruction,
            "format": request.schema or "json",
            "stream": False,
            "options": {"temperature": 0.3},
        }
        try:
            resp = self._client.post(f"{self._base_url}/api/generate", json=payload)
            resp.raise_for_status()
            out = resp.json()
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"Ollama timed out ({request.schema_name}): {e}") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Ollama returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                hint=f"Is model {request.model!r} pulled? Try: ollama pull {request.model}",
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise TransportError(
                f"Ollama request failed: {e}",
                hint=f"Is Ollama running at {self._base_url}?",
            ) from e
        return out.get("response", "") if isinstance(out, dict) else ""


class OpenAIBackend(ModelBackend):
    """OpenAI chat completions with a JSON-schema response format."""

    provider = "openai"

    def __init__(self, api_key: str, *, timeout: float = 120.0, client: Any = None):
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key, timeout=timeout)
        self._client = client

    def generate(self, request: GenerationRequest) -> str:
        import openai

        try:
            response = self._client.chat.completions.create(
                model=request.model,
                messages=[
                    {"role": "system", "content": request.system_instruction},
                    {"role": "user", "content": request.prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": request.schema_name, "schema": request.schema},
                },
                temperature=0.3,
            )
        except openai.APITimeoutError as e:
            raise RequestTimeout(f"OpenAI timed out ({request.schema_name}): {e}") from e
        except openai.APIError as e:
            raise TransportError(f"OpenAI request failed: {e}") from e
        return response.choices[0].message.content or ""


def default_model(provider: str) -> str:
    return DEFAULT_MODELS.get(provider, "")


def get_backend(settings: "Settings") -> ModelBackend:
    """
    Build the backend named by settings.llm_provider:
    - "ollama" -> local Ollama
    - "openai" -> OpenAI API (needs OPENAI_API_KEY)
    Anything else raises ConfigurationError.
    """
    provider = (settings.llm_provider or "").lower()
    if provider == "ollama":
        return OllamaBackend(settings.ollama_url, timeout=settings.llm_timeout)
    if provider == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError(
                "OpenAI provider selected but no API key configured",
                hint="Set OPENAI_API_KEY.",
            )
        return OpenAIBackend(settings.openai_api_key, timeout=settings.llm_timeout)
    raise ConfigurationError(
        f"Unknown LLM provider: {settings.llm_provider!r}",
        hint="Set SHEET_INTEL_LLM_PROVIDER to 'ollama' or 'openai'.",
    )
