"""Configuration models and YAML loader for the feature pipeline."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from rankfeatures.latent import LatentConfig
from rankfeatures.vectorizer import VectorizerConfig


CONFIG_PATH = Path("config/settings.yaml")


class FieldGroupSettings(BaseModel):
    """Vectorizer and optional latent embedder options of one field group."""

    model_config = ConfigDict(frozen=True)

    min_document_frequency: PositiveInt = 3
    use_idf: bool = True
    use_l2_norm: bool = True
    use_sublinear_tf: bool = False
    latent_dimensions: Optional[PositiveInt] = None
    center_latent: bool = True

    def vectorizer_config(self) -> VectorizerConfig:
        return VectorizerConfig(
            min_document_frequency=self.min_document_frequency,
            use_idf=self.use_idf,
            use_l2_norm=self.use_l2_norm,
            use_sublinear_tf=self.use_sublinear_tf,
        )

    def latent_config(self) -> Optional[LatentConfig]:
        if self.latent_dimensions is None:
            return None
        return LatentConfig(k=self.latent_dimensions, center=self.center_latent)


def _all_text_defaults() -> FieldGroupSettings:
    return FieldGroupSettings(min_document_frequency=5, use_sublinear_tf=True, latent_dimensions=150)


def _title_defaults() -> FieldGroupSettings:
    return FieldGroupSettings(min_document_frequency=3, latent_dimensions=50)


def _header_defaults() -> FieldGroupSettings:
    return FieldGroupSettings(min_document_frequency=3)


_GROUP_DEFAULTS = {
    "all_text": _all_text_defaults,
    "title": _title_defaults,
    "header": _header_defaults,
}


class FeatureSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    all_text: FieldGroupSettings = Field(default_factory=_all_text_defaults)
    title: FieldGroupSettings = Field(default_factory=_title_defaults)
    header: FieldGroupSettings = Field(default_factory=_header_defaults)
    header_tags: List[str] = Field(default_factory=lambda: ["h1", "h2", "h3"])
    max_workers: Optional[PositiveInt] = None

    @model_validator(mode="before")
    @classmethod
    def merge_group_defaults(cls, data: Any) -> Any:
        # A partially specified group keeps the reference values of that group.
        if not isinstance(data, dict):
            return data
        merged = dict(data)
        for name, defaults in _GROUP_DEFAULTS.items():
            value = merged.get(name)
            if isinstance(value, dict):
                merged[name] = {**defaults().model_dump(), **value}
        return merged

    @field_validator("header_tags")
    @classmethod
    def validate_header_tags(cls, tags: List[str]) -> List[str]:
        if not tags:
            raise ValueError("header_tags must contain at least one tag")
        if len(tags) != len(set(tags)):
            raise ValueError("header_tags contains duplicate tags")
        if any(not tag.strip() for tag in tags):
            raise ValueError("header_tags contains an empty tag")
        return tags

    @model_validator(mode="after")
    def validate_header_group(self) -> "FeatureSettings":
        if self.header.latent_dimensions is not None:
            raise ValueError("the header group has no latent embedder; unset header.latent_dimensions")
        return self


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


@lru_cache(maxsize=8)
def get_settings(path: Optional[Path] = None) -> FeatureSettings:
    """Load and cache feature settings."""

    target_path = Path(path) if path else CONFIG_PATH
    raw = _load_yaml(target_path)
    return FeatureSettings.model_validate(raw)
