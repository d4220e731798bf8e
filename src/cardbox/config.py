"""Application configuration: settings schema and cardbox.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from cardbox.core.models import AssemblyOptions


CONFIG_FILE = "cardbox.yaml"
ENV_PREFIX = "CARDBOX_"


class Settings(BaseModel):
    strict:         bool = Field(default=False, description="Fail the whole card on the first component error")
    keep_raw_files: bool = Field(default=False, description="Attach the extracted file map to decoded documents")
    log_level:      str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    output_format:  str  = Field(default="yaml", pattern="^(yaml|json)$", description="inspect output: yaml or json")

    def assembly_options(self) -> AssemblyOptions:
        return AssemblyOptions(strict=self.strict, keep_raw_files=self.keep_raw_files)


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from cardbox.yaml, then CARDBOX_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    if isinstance(data.get("log_level"), str):
        data["log_level"] = data["log_level"].upper()
    return Settings(**data)
