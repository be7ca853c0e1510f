"""Typed image request and the adapter for loosely shaped arguments."""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_POSITIONAL_FIELDS = ("path", "size", "flag", "quality", "convert_to_modern")


class ImageRequest(BaseModel):
    """Everything needed to resolve one image.

    ``size`` holds a single ``WxH`` spec; ``srcset`` holds a list of widths or
    ``WxH`` specs for multi-resolution output. ``flag`` and ``quality`` fall
    back to the configured defaults when omitted.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    path: str | None = Field(None, description="Image identifier")
    size: str | None = Field(None, description="Target size, e.g. '800x600'")
    srcset: list[str] | None = Field(None, description="Sizes for a srcset attribute")
    flag: str | None = Field(None, description="Resize flag, e.g. 'fit+shrink_only'")
    quality: int | None = Field(None, ge=0, description="Quality override")
    convert_to_modern: bool = Field(True, description="Rewrite jpg/png output to webp")

    @field_validator("path", mode="before")
    @classmethod
    def unwrap_path(cls, value: Any) -> Any:
        """Accept ``["ns/ab/a.jpg"]`` where a single identifier is expected."""
        if isinstance(value, (list, tuple)):
            return value[0] if value else None
        return value or None

    @field_validator("srcset", mode="before")
    @classmethod
    def normalize_srcset(cls, value: Any) -> Any:
        if value is None:
            return None
        return [str(v).strip() for v in value if str(v).strip()]

    @field_validator("size", "flag", mode="before")
    @classmethod
    def empty_to_none(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @classmethod
    def from_args(cls, args: Any) -> "ImageRequest":
        """Build a request from positional, keyword or nested arguments.

        Accepted shapes::

            "ns/ab/a.jpg"
            ["ns/ab/a.jpg", "800x600", "fill", 80, False]
            ["ns/ab/a.jpg", ["400", "800"]]
            {"path": "ns/ab/a.jpg", "size": "800x600"}
            [{"path": "ns/ab/a.jpg", "size": "800x600"}]
        """
        if isinstance(args, ImageRequest):
            return args

        if isinstance(args, str) or args is None:
            return cls(path=args)

        if (
            isinstance(args, Sequence)
            and len(args) == 1
            and isinstance(args[0], Mapping)
        ):
            args = args[0]

        if isinstance(args, Mapping):
            values = dict(args)
            if "path" not in values and 0 in values:
                values["path"] = values.pop(0)
            if "convertToWebp" in values:
                values["convert_to_modern"] = values.pop("convertToWebp")
        else:
            values = dict(zip(_POSITIONAL_FIELDS, args))

        size = values.get("size")
        if isinstance(size, (list, tuple)):
            values["srcset"] = list(size)
            values["size"] = None

        values = {
            key: value
            for key, value in values.items()
            if key in cls.model_fields and value is not None
        }
        return cls(**values)
