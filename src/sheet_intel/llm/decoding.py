"""Strict decoding of model JSON output into typed models.

The model is asked for JSON matching a schema; anything else becomes a
SchemaViolation. A partially populated value is never returned.
"""

import json
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from sheet_intel.errors import SchemaViolation

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCED = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_markdown_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    stripped = (text or "").strip()
    match = _FENCED.match(stripped)
    return match.group(1).strip() if match else stripped


def decode_model_json(raw_response: str, model_cls: type[ModelT]) -> ModelT:
    """
    Parse raw model text and validate it against model_cls.

    Raises:
        SchemaViolation: stage "json_parse" if the text is not JSON,
            stage "schema" if it is not an object or fails validation.
    """
    cleaned = strip_markdown_fences(raw_response)
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as e:
        raise SchemaViolation("json_parse", [str(e)], raw_response) from e

    if not isinstance(data, dict):
        raise SchemaViolation("schema", ["top-level JSON must be an object"], raw_response)

    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise SchemaViolation("schema", errors, raw_response) from e
