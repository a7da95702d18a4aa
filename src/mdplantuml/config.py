"""Plugin configuration: options schema and mdplantuml.yaml loader"""

import logging
import os
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field


CONFIG_FILE = "mdplantuml.yaml"
DEFAULT_BASE_URL = "https://www.plantuml.com/plantuml"

Transport = Callable[[str], Awaitable[httpx.Response]]


class PlantumlOptions(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url:          str  = Field(default=DEFAULT_BASE_URL, description="Root of the PlantUML rendering service")
    output_format:     str  = Field(default="png", pattern="^(png|svg)$", description="png or svg")
    output_dir:        str  = Field(default="./static", description="Directory for generated diagram files")
    inline_image:      bool = Field(default=False, description="Point images at the server; never fetch or write")
    inline_svg:        bool = Field(default=False, description="Embed fetched SVG markup (svg format only)")
    include_path:      str  = Field(default="./", description="Base directory for relative !include targets")
    url_prefix:        str  = Field(default="/", description="Public prefix for stored diagram URLs")
    parser_config:     str  = Field(default="gfm-like", description="MarkdownIt parser preset name")
    max_include_depth: int  = Field(default=32, ge=1, description="Nested include limit before giving up")
    transport: Optional[Transport] = Field(default=None, exclude=True, description="Async url -> httpx.Response")
    logger: Optional[logging.Logger] = Field(default=None, exclude=True)

    @property
    def log(self) -> logging.Logger:
        return self.logger or logging.getLogger("mdplantuml")


def resolve_options(options: "PlantumlOptions | Mapping[str, Any] | None" = None) -> PlantumlOptions:
    """Merge caller-supplied options onto defaults without consulting files or env."""
    if isinstance(options, PlantumlOptions):
        return options
    return PlantumlOptions(**{k: v for k, v in (options or {}).items() if v is not None})


def load_config(overrides: dict[str, Any] = None) -> PlantumlOptions:
    """Load options from mdplantuml.yaml, then MDPLANTUML_<FIELD> env vars, then non-None overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in ("transport", "logger"):
        data.pop(name, None)
    for name in PlantumlOptions.model_fields:
        if name in ("transport", "logger"):
            continue
        if val := os.getenv(f"MDPLANTUML_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return PlantumlOptions(**data)
