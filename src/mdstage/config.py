"""Application configuration: settings schema and mdstage.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "mdstage.yaml"


class Settings(BaseModel):
    app_name:    str  = "mdstage"
    root_dir:    str  = Field(default=".",                 description="Blog repository root")
    posts_dir:   str  = Field(default="src/content/posts", description="Posts root, relative to root_dir")
    images_dir:  str  = Field(default="src/assets/images", description="Images root, relative to root_dir")
    default_tag: str  = Field(default="未分类", min_length=1, description="Tag used when none are given")
    default_lang: str = Field(default="zh",   min_length=1, description="Header lang when none is given")
    default_toc: bool = Field(default=True,                 description="Header toc flag when none is given")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from mdstage.yaml, then MDSTAGE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSTAGE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
