from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from passportsheet.core.errors import PassportSheetError
from passportsheet.core.models import CropPolicy, SheetSpec
from passportsheet.normalize.gemini_backend import DEFAULT_MODEL
from passportsheet.normalize.options import BackgroundColor, ClothingOption
from passportsheet.normalize.retry import RetryPolicy

BACKENDS = ("gemini", "rembg", "none")
API_KEY_VARS = ("GEMINI_API_KEY", "API_KEY")


class ConfigError(PassportSheetError):
    """The configuration file or values are invalid."""


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything the pipeline needs, passed explicitly instead of read from globals.

    backend:
        "gemini" (remote, supports outfits), "rembg" (local cut-out) or "none"
        (skip normalization and print the raw crop).
    """
    crop: CropPolicy = field(default_factory=CropPolicy)
    sheet: SheetSpec = field(default_factory=SheetSpec)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    background: BackgroundColor = BackgroundColor.WHITE
    clothing: ClothingOption = ClothingOption.NONE
    backend: str = "gemini"
    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None


def _build(cls, section: Any, name: str):
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be an object")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}': {', '.join(unknown)}")
    values = {k: tuple(v) if isinstance(v, list) else v for k, v in section.items()}
    return cls(**values)


def _parse_background(value: str) -> BackgroundColor:
    try:
        return BackgroundColor[value.strip().upper()]
    except KeyError:
        raise ConfigError(f"Unknown background colour: {value}") from None


def config_from_dict(data: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> PipelineConfig:
    known_sections = {"crop", "sheet", "retry", "normalize"}
    unknown = sorted(set(data) - known_sections)
    if unknown:
        raise ConfigError(f"Unknown section(s): {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}
    if "crop" in data:
        kwargs["crop"] = _build(CropPolicy, data["crop"], "crop")
    if "sheet" in data:
        kwargs["sheet"] = _build(SheetSpec, data["sheet"], "sheet")
    if "retry" in data:
        kwargs["retry"] = _build(RetryPolicy, data["retry"], "retry")

    norm = data.get("normalize", {})
    if not isinstance(norm, dict):
        raise ConfigError("'normalize' must be an object")
    extra = sorted(set(norm) - {"background", "clothing", "backend", "model", "api_key"})
    if extra:
        raise ConfigError(f"Unknown key(s) in 'normalize': {', '.join(extra)}")
    if "background" in norm:
        kwargs["background"] = _parse_background(norm["background"])
    if "clothing" in norm:
        try:
            kwargs["clothing"] = ClothingOption.parse(norm["clothing"])
        except ValueError as e:
            raise ConfigError(str(e)) from e
    if "backend" in norm:
        if norm["backend"] not in BACKENDS:
            raise ConfigError(f"backend must be one of {', '.join(BACKENDS)}")
        kwargs["backend"] = norm["backend"]
    if "model" in norm:
        kwargs["model"] = norm["model"]
    if "api_key" in norm:
        kwargs["api_key"] = norm["api_key"]

    env = os.environ if env is None else env
    for var in API_KEY_VARS:
        if env.get(var):
            kwargs["api_key"] = env[var]
            break

    try:
        return PipelineConfig(**kwargs)
    except TypeError as e:
        raise ConfigError(str(e)) from e


def load_config(path: str | Path | None = None, env: Optional[Mapping[str, str]] = None) -> PipelineConfig:
    """
    Load a JSON config file (sections: crop, sheet, retry, normalize) and pick up the
    API key from GEMINI_API_KEY / API_KEY. With no path, defaults plus environment.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Config root must be an object")
    return config_from_dict(data, env=env)
