"""Image handle returned to callers and templating layers."""

from enum import Enum
from pathlib import Path
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from image_storage.models.descriptor import TransformDescriptor
from image_storage.utils.constants import (
    FRIENDLY_URL_QUERY_PARAM,
    MESSAGE_IMAGE_NOT_FOUND,
    MESSAGE_UNKNOWN_FORMAT,
    TERMINAL_LINK,
)
from image_storage.utils.mime import mime_type_for_extension


class ImageStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    UNKNOWN_FORMAT = "unknown_format"


class ImageHandle(BaseModel):
    """Reference to a stored or generated image.

    Handles with a terminal status point at nothing; their link is ``#`` and
    ``error`` says why, so render call sites can still emit markup.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="Identifier relative to data_path")
    data_path: Path | None = Field(None, description="Root the identifier lives under")
    data_dir: str = Field("", description="Public base directory for links")
    friendly_url: bool = False
    status: ImageStatus = ImageStatus.OK
    error: str | None = None

    sha: str | None = Field(None, description="Checksum of a freshly stored original")
    name: str | None = Field(None, description="Sanitized original file name")
    descriptor: TransformDescriptor | None = None

    @classmethod
    def not_found(cls) -> "ImageHandle":
        return cls(
            identifier="",
            status=ImageStatus.NOT_FOUND,
            error=MESSAGE_IMAGE_NOT_FOUND,
        )

    @classmethod
    def unknown_format(cls) -> "ImageHandle":
        return cls(
            identifier="",
            status=ImageStatus.UNKNOWN_FORMAT,
            error=MESSAGE_UNKNOWN_FORMAT,
        )

    @property
    def is_ok(self) -> bool:
        return self.status is ImageStatus.OK

    @property
    def path(self) -> Path | None:
        """Absolute file location, None for terminal handles."""
        if not self.is_ok or self.data_path is None:
            return None
        return self.data_path / self.identifier

    @property
    def mime_type(self) -> str:
        return mime_type_for_extension(Path(self.identifier).suffix)

    def create_link(self) -> str:
        """Public link relative to the web root.

        Friendly links expose the original file name and carry the real
        identifier in the ``_image_storage`` query parameter.
        """
        if not self.is_ok:
            return TERMINAL_LINK

        if self.friendly_url:
            namespace_and_prefix, _, filename = self.identifier.rpartition("/")
            descriptor = self.descriptor
            if descriptor is not None and descriptor.has_size:
                filename = descriptor.filename
                query = quote(self.identifier, safe="/")
                return (
                    f"{self.data_dir}/{namespace_and_prefix}/{filename}"
                    f"?{FRIENDLY_URL_QUERY_PARAM}={query}"
                )

        return f"{self.data_dir}/{self.identifier}"

    def __str__(self) -> str:
        return self.create_link()


class ImageHandleFactory:
    """Builds handles sharing one link configuration.

    ``friendly_url`` stays switchable at runtime; every component holding the
    same factory picks up the change.
    """

    def __init__(self, *, data_path: Path, data_dir: str, friendly_url: bool) -> None:
        self.data_path = data_path
        self.data_dir = data_dir
        self.friendly_url = friendly_url

    def build(
        self,
        identifier: str,
        *,
        sha: str | None = None,
        name: str | None = None,
        descriptor: TransformDescriptor | None = None,
    ) -> ImageHandle:
        return ImageHandle(
            identifier=identifier,
            data_path=self.data_path,
            data_dir=self.data_dir,
            friendly_url=self.friendly_url,
            sha=sha,
            name=name,
            descriptor=descriptor,
        )
