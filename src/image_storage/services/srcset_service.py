"""Multi-resolution planning: ``srcset`` values and ``<img>`` attributes."""

import math
from collections.abc import Sequence

from aws_lambda_powertools import Logger

from image_storage.models.config import StorageSettings
from image_storage.models.errors import SizeFormatError
from image_storage.models.request import ImageRequest
from image_storage.repositories.codec_repository import ImageCodec
from image_storage.services.derivative_service import DerivativeService
from image_storage.utils.constants import USAGE_EXAMPLE_SINGLE_SIZE, USAGE_EXAMPLE_SRCSET
from image_storage.utils.files import resolve_within

logger = Logger(UTC=True)


class SrcsetService:
    """Turns a list of widths or ``WxH`` sizes into derivative links."""

    def __init__(
        self,
        settings: StorageSettings,
        codec: ImageCodec,
        derivatives: DerivativeService,
    ) -> None:
        self.settings = settings
        self.codec = codec
        self.derivatives = derivatives

    def normalize_size(self, identifier: str, size: str) -> str:
        """Complete a width-only size with the height matching the original.

        Sizes that already contain ``x`` are returned unchanged. A missing or
        unreadable original is treated as square.

        Raises:
            SizeFormatError: If a width-only size is not a number
        """
        size = str(size).strip()
        if "x" in size:
            return size

        try:
            width = int(size)
        except ValueError as exc:
            raise SizeFormatError(
                message=(
                    f"Invalid srcset width: '{size}'. "
                    f"Usage: {USAGE_EXAMPLE_SINGLE_SIZE} or {USAGE_EXAMPLE_SRCSET}"
                ),
                details={
                    "size": size,
                    "examples": [USAGE_EXAMPLE_SINGLE_SIZE, USAGE_EXAMPLE_SRCSET],
                },
            ) from exc

        aspect_ratio = 1.0
        dimensions = self.codec.probe_dimensions(
            resolve_within(self.settings.originals_root, identifier)
        )
        if dimensions is not None and dimensions[0] > 0 and dimensions[1] > 0:
            aspect_ratio = dimensions[0] / dimensions[1]
        else:
            logger.debug("Original dimensions unknown, assuming square", extra={"identifier": identifier})

        height = max(1, math.floor(width / aspect_ratio + 0.5))
        return f"{width}x{height}"

    def plan(self, identifier: str, sizes: Sequence[str]) -> list[tuple[int, str]]:
        """Return ``(width, "WxH")`` pairs in input order."""
        planned = []
        for size in sizes:
            normalized = self.normalize_size(identifier, size)
            width = int(normalized.split("x", 1)[0] or 0)
            planned.append((width, normalized))
        return planned

    def create_srcset(
        self,
        identifier: str,
        sizes: Sequence[str],
        path_prefix: str,
        flag: str | None = None,
        quality: int | None = None,
        convert_to_modern: bool = True,
    ) -> str:
        """Build a ``srcset`` value such as ``/data/a.400x200.fit.q80.webp 400w, ...``.

        Every size is resolved through the derivative cache, so missing
        variants are generated on the way.
        """
        if not sizes:
            return ""

        flag = flag or self.settings.default_transform
        parts = []
        for width, size in self.plan(identifier, sizes):
            handle = self.derivatives.resolve(
                ImageRequest(
                    path=identifier,
                    size=size,
                    flag=flag,
                    quality=quality,
                    convert_to_modern=convert_to_modern,
                )
            )
            parts.append(f"{path_prefix}/{handle.create_link()} {width}w")

        return ", ".join(parts)

    def create_image_attributes(self, request: ImageRequest, path_prefix: str) -> str:
        """Render ``src`` (and ``srcset``) attributes for an ``<img>`` tag.

        With a srcset the main ``src`` uses the last listed size, which by
        convention is the largest.
        """
        identifier = request.path
        if not identifier:
            return ' src=""'

        if request.srcset:
            main_size = self.normalize_size(identifier, request.size or request.srcset[-1])
            main = self.derivatives.resolve(request.model_copy(update={"size": main_size}))
            output = f' src="{path_prefix}/{main.create_link()}"'

            srcset = self.create_srcset(
                identifier,
                request.srcset,
                path_prefix,
                flag=request.flag,
                quality=request.quality,
                convert_to_modern=request.convert_to_modern,
            )
            if srcset:
                output += f' srcset="{srcset}"'
            return output

        handle = self.derivatives.resolve(request)
        return f' src="{path_prefix}/{handle.create_link()}"'
