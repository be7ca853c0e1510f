"""Immutable storage configuration."""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from image_storage.utils.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_DIR_MODE,
    DEFAULT_NOIMAGE_IDENTIFIER,
    DEFAULT_QUALITY,
    DEFAULT_TRANSFORM,
    ENV_DATA_DIR,
    ENV_DATA_PATH,
    ENV_DEFAULT_TRANSFORM,
    ENV_FRIENDLY_URL,
    ENV_MODERN_FORMAT,
    ENV_NOIMAGE_IDENTIFIER,
    ENV_ORIG_PATH,
    FALLBACK_QUALITY,
    FLAG_SEPARATOR,
    MODERN_FORMAT,
    RESIZE_FLAGS,
    TRUTHY_VALUES,
)


class QualityPolicy(BaseModel):
    """Default output quality per format.

    ``jpg`` is looked up as ``jpeg``; formats without an entry use the
    ``jpeg`` value, and 85 when that is unset too.
    """

    model_config = ConfigDict(frozen=True)

    qualities: dict[str, int | None] = Field(default_factory=lambda: dict(DEFAULT_QUALITY))

    def for_format(self, extension: str) -> int | None:
        fmt = extension.lower().lstrip(".")
        if fmt == "jpg":
            fmt = "jpeg"

        if fmt in self.qualities:
            return self.qualities[fmt]

        jpeg_quality = self.qualities.get("jpeg")
        return jpeg_quality if jpeg_quality is not None else FALLBACK_QUALITY


class StorageSettings(BaseModel):
    """Configuration shared by every storage component.

    ``data_path`` is the derivative tree (also the public web directory),
    ``orig_path`` the content-addressed originals tree. Both may point to the
    same directory.
    """

    model_config = ConfigDict(frozen=True)

    data_path: Path = Field(..., description="Root of generated derivatives")
    orig_path: Path | None = Field(None, description="Root of stored originals")
    data_dir: str = Field(DEFAULT_DATA_DIR, description="Public base directory for links")
    quality: QualityPolicy = Field(default_factory=QualityPolicy)
    default_transform: str = Field(DEFAULT_TRANSFORM, min_length=1)
    noimage_identifier: str = Field(DEFAULT_NOIMAGE_IDENTIFIER, min_length=1)
    friendly_url: bool = False
    modern_format: str = Field(MODERN_FORMAT, min_length=1)
    dir_mode: int = DEFAULT_DIR_MODE
    resize_flags: dict[str, int] = Field(default_factory=lambda: dict(RESIZE_FLAGS))

    @field_validator("quality", mode="before")
    @classmethod
    def coerce_quality(cls, value: Any) -> Any:
        """Accept a plain ``{"jpeg": 85, ...}`` mapping."""
        if isinstance(value, dict) and "qualities" not in value:
            return {"qualities": {k.lower(): v for k, v in value.items()}}
        return value

    @field_validator("data_dir")
    @classmethod
    def strip_data_dir(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def validate_default_transform(self) -> "StorageSettings":
        unknown = [
            token
            for token in self.default_transform.split(FLAG_SEPARATOR)
            if token not in self.resize_flags
        ]
        if unknown:
            raise ValueError(f"Unknown default transform token(s): {', '.join(unknown)}")
        return self

    @property
    def originals_root(self) -> Path:
        return self.orig_path if self.orig_path is not None else self.data_path

    @property
    def shared_root(self) -> bool:
        """True when originals and derivatives live in the same tree."""
        return self.originals_root.resolve() == self.data_path.resolve()

    @classmethod
    def from_env(cls) -> "StorageSettings":
        """Build settings from ``IMAGE_STORAGE_*`` environment variables.

        Raises:
            RuntimeError: If the data path variable is not set
        """
        data_path = os.getenv(ENV_DATA_PATH)
        if not data_path:
            raise RuntimeError(f"{ENV_DATA_PATH} environment variable is not set")

        values: dict[str, Any] = {"data_path": data_path}

        optional = {
            "orig_path": ENV_ORIG_PATH,
            "data_dir": ENV_DATA_DIR,
            "default_transform": ENV_DEFAULT_TRANSFORM,
            "noimage_identifier": ENV_NOIMAGE_IDENTIFIER,
            "modern_format": ENV_MODERN_FORMAT,
        }
        for field, env_name in optional.items():
            value = os.getenv(env_name)
            if value:
                values[field] = value

        friendly = os.getenv(ENV_FRIENDLY_URL)
        if friendly is not None:
            values["friendly_url"] = friendly.strip().lower() in TRUTHY_VALUES

        return cls(**values)
