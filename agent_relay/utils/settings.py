from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    provider: str = "openai"
    model: str
    base_url: Optional[str] = None
    api_key_env: str = "OPENAI_API_KEY"
    temperature: Optional[float] = None
    preserve_think_tags: bool = False


class ManagerSettings(BaseModel):
    max_rounds: int = Field(default=10, ge=1)
    debug: bool = False


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"


class AppConfig(BaseModel):
    llm: LLMConfig
    manager: ManagerSettings = Field(default_factory=ManagerSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(env: str = "base", config_dir: str | Path = "configs") -> AppConfig:
    root = Path(config_dir)
    base = _read_yaml(root / "base.yaml")
    if env != "base":
        override_path = root / f"{env}.yaml"
        if override_path.exists():
            base = _merge_dicts(base, _read_yaml(override_path))
    return AppConfig(
        llm=LLMConfig(**base["llm"]),
        manager=ManagerSettings(**(base.get("manager") or {})),
        logging=LoggingConfig(**(base.get("logging") or {})),
    )


def _read_yaml(path: Path) -> Dict[str, Any]:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge_dicts(base[key], value)
        else:
            merged[key] = value
    return merged
