from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from src.extract.panes import resolve_mode

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "PANE_EXTRACTORS_"


class ExtractionSettings(BaseModel):
    mode: str = "all_panes"
    window: str | None = None

    @field_validator("mode")
    @classmethod
    def _validate_mode(cls, value: str) -> str:
        return resolve_mode(value).value


class OutputSettings(BaseModel):
    indent: int = 2


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides.

    Only the default config path may be absent; any other missing file is an error.
    """

    resolved_path = Path(
        config_path
        or os.getenv(f"{ENV_PREFIX}CONFIG")
        or DEFAULT_CONFIG_PATH
    )
    raw_config: dict[str, Any] = {}
    if resolved_path.exists():
        raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
    elif resolved_path != DEFAULT_CONFIG_PATH:
        raise FileNotFoundError(f"Config file not found: {resolved_path}")
    data = Settings.model_validate(raw_config).model_dump(mode="python")

    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        suffix = key[len(ENV_PREFIX) :]
        if suffix == "CONFIG":
            continue

        path = [part.lower() for part in suffix.split("__")]
        _apply_override(data, path, raw_value)

    return Settings.model_validate(data)


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    if len(path) != 2:
        return

    section, key = path
    current = data.get(section)
    if not isinstance(current, dict) or key not in current:
        return

    existing_value = current[key]
    if isinstance(existing_value, int):
        current[key] = int(raw_value)
    elif existing_value is None and not raw_value:
        current[key] = None
    else:
        current[key] = raw_value
