"""Runtime settings: model provider, timeouts, storage path and prompt wording."""

import os
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field

from sheet_intel.llm import prompts

ENV_PREFIX = "SHEET_INTEL_"


class PromptSet(BaseModel):
    """System instructions per model call. Wording is configuration, not code."""

    analysis: str = prompts.ANALYSIS_SYSTEM
    meta: str = prompts.META_SYSTEM
    dossiers: str = prompts.DOSSIERS_SYSTEM
    column_summary: str = prompts.COLUMN_SUMMARY_SYSTEM
    default_meta_prompt: str = prompts.DEFAULT_META_PROMPT


class Settings(BaseModel):
    """Pipeline settings. Credentials come from the environment only."""

    llm_provider: Optional[str] = Field(default=None, description="ollama | openai")
    analysis_model: Optional[str] = None
    synthesis_model: Optional[str] = None
    ollama_url: str = "http://localhost:11434"
    openai_api_key: Optional[str] = Field(default=None, repr=False)

    fetch_timeout: float = Field(default=30.0, gt=0)
    llm_timeout: float = Field(default=120.0, gt=0)
    max_workers: int = Field(default=4, ge=1, description="Concurrent record analyses")

    db_path: Path = Path("sheet_intel.db")
    prompts: PromptSet = Field(default_factory=PromptSet)

    @classmethod
    def from_env(cls, base: Optional[dict] = None) -> "Settings":
        """Build settings from SHEET_INTEL_* variables layered over base values."""
        data: dict = dict(base or {})
        env_keys = {
            "llm_provider": "LLM_PROVIDER",
            "analysis_model": "ANALYSIS_MODEL",
            "synthesis_model": "SYNTHESIS_MODEL",
            "ollama_url": "OLLAMA_URL",
            "fetch_timeout": "FETCH_TIMEOUT",
            "llm_timeout": "LLM_TIMEOUT",
            "max_workers": "MAX_WORKERS",
            "db_path": "DB_PATH",
        }
        for field, suffix in env_keys.items():
            value = os.environ.get(ENV_PREFIX + suffix)
            if value:
                data[field] = value
        api_key = os.environ.get("OPENAI_API_KEY")
        if api_key:
            data["openai_api_key"] = api_key
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from YAML. Supports nested (llm/pipeline/prompts) or flat structure."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        llm = data.get("llm") or {}
        pipeline = data.get("pipeline") or {}

        def _get(key: str, nested: dict, top: dict, default=None):
            return nested.get(key, top.get(key, default))

        flat: dict = {}
        for key, section in (
            ("llm_provider", llm),
            ("analysis_model", llm),
            ("synthesis_model", llm),
            ("ollama_url", llm),
            ("llm_timeout", llm),
            ("fetch_timeout", pipeline),
            ("max_workers", pipeline),
            ("db_path", pipeline),
        ):
            value = _get(key, section, data)
            if value is not None:
                flat[key] = value
        if llm.get("provider") and "llm_provider" not in flat:
            flat["llm_provider"] = llm["provider"]
        if data.get("prompts"):
            flat["prompts"] = data["prompts"]
        return cls.from_env(flat)
