"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:           str  = "mdblocks"
    parser_config:      str  = Field(default="gfm-like", description="MarkdownIt parser preset name")
    min_level:          int  = Field(default=1, ge=1, le=6, description="Shallowest heading level emitted as a section")
    max_level:          int  = Field(default=6, ge=1, le=6, description="Deepest heading level emitted as a section")
    include_content:    bool = Field(default=True, description="Attach section body text to each section")
    content_mode:       str  = Field(default="minimal", pattern="^(minimal|full|smart)$", description="minimal, full or smart")
    max_content_length: int  = Field(default=2000, ge=1, description="Length budget for smart content mode")
    blank_lines:        int  = Field(default=1, ge=0, description="Blank lines between sections when writing documents")
    log_level:          str  = Field(default="WARNING", description="Logging level name")

    @model_validator(mode="after")
    def _check_levels(self) -> "Settings":
        if self.min_level > self.max_level:
            raise ValueError(f"min_level ({self.min_level}) exceeds max_level ({self.max_level})")
        return self


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDBLOCKS_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MDBLOCKS_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
