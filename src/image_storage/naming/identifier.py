"""Encoding and decoding of image identifiers.

An identifier is a relative path of the form::

    <namespace>/<prefix>/<name>[.<W>x<H>[crop<L>x<T>x<R>x<B>][.<flag>]][.q<quality>].<ext>

The transform suffix is optional; an identifier without one references an
original. Encoding is the exact inverse of decoding, so derived file names are
a pure function of the source identifier and the transform parameters.
"""

import re
from collections.abc import Mapping

from aws_lambda_powertools import Logger
from pydantic import ValidationError as PydanticValidationError

from image_storage.models.descriptor import Crop, TransformDescriptor
from image_storage.models.errors import (
    IdentifierError,
    ResizeFlagError,
    SizeFormatError,
)
from image_storage.utils.constants import (
    CROP_TOKEN,
    FLAG_SEPARATOR,
    QUALITY_TOKEN,
    RESIZE_FLAGS,
    TRANSFORM_ESCAPE_SEPARATOR,
    TRANSFORM_SUFFIX_PATTERN,
    USAGE_EXAMPLE_SINGLE_SIZE,
    USAGE_EXAMPLE_SRCSET,
)

logger = Logger(UTC=True)

_FILENAME_RE = re.compile(r"^(?P<name>.+?)" + TRANSFORM_SUFFIX_PATTERN)

_SIZE_RE = re.compile(
    rf"(?P<width>\d+)?x(?P<height>\d+)?"
    rf"(?:{CROP_TOKEN}(?P<left>\d+)x(?P<top>\d+)x(?P<right>\d+)x(?P<bottom>\d+))?"
)


def decode(identifier: str) -> TransformDescriptor:
    """Parse an identifier into a descriptor.

    Args:
        identifier: Relative path such as ``users/ab/photo.400x300.fit.q80.webp``

    Returns:
        The decoded descriptor; plain originals decode without a transform

    Raises:
        IdentifierError: If the identifier does not follow the layout
        ResizeFlagError: If the encoded flag contains an unknown token
    """
    parts = identifier.strip("/").rsplit("/", 2)
    segments = identifier.strip("/").split("/")
    if len(parts) != 3 or not all(parts) or any(s in (".", "..") for s in segments):
        raise IdentifierError(
            message=f"Invalid image identifier '{identifier}'",
            details={"identifier": identifier},
        )

    namespace, prefix, filename = parts
    match = _FILENAME_RE.match(filename)
    if match is None:
        raise IdentifierError(
            message=f"Image identifier '{identifier}' has no extension",
            details={"identifier": identifier},
        )

    flag = match.group("flag")
    if flag is not None:
        decode_flag(flag)

    size = None
    crop = None
    if match.group("width") is not None:
        size = (int(match.group("width")), int(match.group("height")))
        if match.group("left") is not None:
            crop = _crop_from_match(match)

    quality = match.group("quality")

    try:
        return TransformDescriptor(
            namespace=namespace,
            prefix=prefix,
            name=match.group("name"),
            extension=match.group("extension"),
            size=size,
            crop=crop,
            flag=flag,
            quality=int(quality) if quality is not None else None,
        )
    except PydanticValidationError as exc:
        raise IdentifierError(
            message=f"Invalid image identifier '{identifier}'",
            details={"identifier": identifier},
        ) from exc


def encode(descriptor: TransformDescriptor) -> str:
    """Serialize a descriptor back into its identifier."""
    filename = descriptor.name

    if descriptor.size is not None:
        filename += f".{descriptor.size[0]}x{descriptor.size[1]}"
        if descriptor.crop is not None:
            filename += CROP_TOKEN + "x".join(str(v) for v in descriptor.crop)
        if descriptor.flag:
            filename += f".{descriptor.flag}"

    if descriptor.quality is not None:
        filename += f".{QUALITY_TOKEN}{descriptor.quality}"

    filename += f".{descriptor.extension}"

    return "/".join([descriptor.namespace, descriptor.prefix, filename])


def decode_size_spec(raw: str) -> tuple[int, int, Crop | None]:
    """Parse ``WxH`` or ``WxHcropLxTxRxB``.

    Raises:
        SizeFormatError: If either dimension is missing or zero
    """
    match = _SIZE_RE.fullmatch(raw.strip()) if isinstance(raw, str) else None

    width = int(match.group("width")) if match and match.group("width") else 0
    height = int(match.group("height")) if match and match.group("height") else 0

    if match is None or not width or not height:
        logger.warning("Invalid image size format", extra={"size": raw})
        raise SizeFormatError(
            message=(
                f"Invalid image size format: '{raw}'. "
                "Expected 'WIDTHxHEIGHT' with both values positive (e.g. '800x600'). "
                f"Usage: {USAGE_EXAMPLE_SINGLE_SIZE} or {USAGE_EXAMPLE_SRCSET}"
            ),
            details={
                "size": raw,
                "width": width,
                "height": height,
                "examples": [USAGE_EXAMPLE_SINGLE_SIZE, USAGE_EXAMPLE_SRCSET],
            },
        )

    crop = _crop_from_match(match) if match.group("left") is not None else None
    return width, height, crop


def decode_flag(flag: str, table: Mapping[str, int] = RESIZE_FLAGS) -> int:
    """Turn ``fit`` or ``fit+shrink_only`` into the resize bitmask.

    Raises:
        ResizeFlagError: If the flag is empty or a token is unknown
    """
    bits = 0
    for token in flag.split(FLAG_SEPARATOR):
        if token not in table:
            raise ResizeFlagError(
                message=f"Unknown resize flag '{token}' in '{flag}'",
                details={"flag": flag, "token": token, "allowed": sorted(table)},
            )
        bits |= table[token]
    return bits


def escape_name(name: str) -> str:
    """Rewrite a stored base name so that no tail of it reads as a transform.

    The dot opening each would-be suffix becomes a dash, so ``a.10x10`` turns
    into ``a-10x10`` and ``pic.q5`` into ``pic-q5``. Collision counters such
    as ``photo.2`` are left alone.
    """
    while True:
        match = _FILENAME_RE.match(f"{name}.x")
        if match is None or match.group("name") == name:
            return name
        plain = match.group("name")
        name = plain + TRANSFORM_ESCAPE_SEPARATOR + name[len(plain) + 1 :]


def transform_pattern(name: str) -> re.Pattern[str]:
    """Return a pattern matching ``name``'s original and all its derivatives."""
    return re.compile("^" + re.escape(name) + TRANSFORM_SUFFIX_PATTERN)


def _crop_from_match(match: re.Match[str]) -> Crop:
    return (
        int(match.group("left")),
        int(match.group("top")),
        int(match.group("right")),
        int(match.group("bottom")),
    )
