"""Structured form of an image identifier and its transform."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from image_storage.models.errors import ResizeFlagError, ValidationError
from image_storage.utils.constants import (
    FLAG_SEPARATOR,
    PREFIX_LENGTH,
    RESIZE_FLAGS,
    TRANSFORM_SUFFIX_PATTERN,
)

Size = tuple[int, int]
Crop = tuple[int, int, int, int]

_FILENAME_RE = re.compile(r"^(?P<name>.+?)" + TRANSFORM_SUFFIX_PATTERN)


def is_plain_name(name: str) -> bool:
    """Return True when no tail of ``name`` reads as a transform suffix."""
    if "/" in name:
        return False
    match = _FILENAME_RE.match(f"{name}.x")
    return match is not None and match.group("name") == name


class TransformDescriptor(BaseModel):
    """Decoded identifier: where an image lives and how it was derived.

    ``crop`` may only be set together with ``size``; ``flag`` is only
    meaningful (and only encoded) together with ``size``.
    """

    model_config = ConfigDict(validate_assignment=True)

    namespace: str = Field(..., min_length=1, description="First path segment(s)")
    prefix: str = Field(
        ...,
        min_length=PREFIX_LENGTH,
        max_length=PREFIX_LENGTH,
        description="Checksum shard directory",
    )
    name: str = Field(..., min_length=1, description="Base file name without extension")
    extension: str = Field(..., min_length=1, description="Lower-cased format token")

    size: tuple[int, int] | None = Field(None, description="Target width and height")
    crop: tuple[int, int, int, int] | None = Field(
        None, description="Crop box: left, top, right, bottom"
    )
    flag: str | None = Field(None, description="Resize flag token(s) joined by '+'")
    quality: int | None = Field(None, ge=0, description="Format specific quality")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not is_plain_name(value):
            raise ValueError(f"name '{value}' ends in a transform suffix")
        return value

    @field_validator("extension")
    @classmethod
    def normalize_extension(cls, value: str) -> str:
        return value.lower().lstrip(".")

    @field_validator("size")
    @classmethod
    def validate_size(cls, value: Size | None) -> Size | None:
        if value is not None and (value[0] <= 0 or value[1] <= 0):
            raise ValueError("width and height must be positive")
        return value

    @field_validator("crop")
    @classmethod
    def validate_crop(cls, value: Crop | None) -> Crop | None:
        if value is not None and any(v < 0 for v in value):
            raise ValueError("crop offsets must not be negative")
        return value

    @field_validator("flag")
    @classmethod
    def validate_flag(cls, value: str | None) -> str | None:
        if value is None:
            return None
        tokens = value.split(FLAG_SEPARATOR)
        unknown = [t for t in tokens if t not in RESIZE_FLAGS]
        if unknown:
            raise ValueError(f"unknown resize flag token(s): {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def validate_transform(self) -> "TransformDescriptor":
        if self.size is None and (self.crop is not None or self.flag is not None):
            raise ValueError("crop and flag require a size")
        return self

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.extension}"

    @property
    def original(self) -> str:
        """Identifier of the untransformed image."""
        return "/".join([self.namespace, self.prefix, self.filename])

    @property
    def has_size(self) -> bool:
        return self.size is not None

    @property
    def has_crop(self) -> bool:
        return self.crop is not None

    def set_extension(self, extension: str) -> None:
        self._assign("extension", extension)

    def set_size(self, size: Size | None) -> None:
        if size is None:
            self.crop = None
            self.flag = None
        self._assign("size", size)

    def set_crop(self, crop: Crop | None) -> None:
        if crop and self.size is None:
            raise ValidationError(
                message="Crop requires a size",
                details={"crop": list(crop)},
            )
        self._assign("crop", tuple(crop) if crop else None)

    def set_flag(self, flag: str | None) -> None:
        if flag is not None and self.size is None:
            raise ValidationError(
                message="Resize flag requires a size",
                details={"flag": flag},
            )
        if flag is not None:
            unknown = [t for t in flag.split(FLAG_SEPARATOR) if t not in RESIZE_FLAGS]
            if unknown:
                raise ResizeFlagError(
                    message=f"Unknown resize flag '{flag}'",
                    details={"flag": flag, "unknown": unknown},
                )
        self.flag = flag

    def set_quality(self, quality: int | None) -> None:
        self._assign("quality", quality)

    def _assign(self, field: str, value: Any) -> None:
        try:
            setattr(self, field, value)
        except PydanticValidationError as exc:
            raise ValidationError(
                message=f"Invalid {field}: {value!r}",
                details={"field": field, "errors": [e["msg"] for e in exc.errors()]},
            ) from exc
