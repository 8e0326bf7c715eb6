"""Model backends, request schemas and response decoding."""

from .backends import (
    GenerationRequest,
    ModelBackend,
    OllamaBackend,
    OpenAIBackend,
    default_model,
    get_backend,
)
from .decoding import decode_model_json, strip_markdown_fences

__all__ = [
    "GenerationRequest",
    "ModelBackend",
    "OllamaBackend",
    "OpenAIBackend",
    "decode_model_json",
    "default_model",
    "get_backend",
    "strip_markdown_fences",
]
