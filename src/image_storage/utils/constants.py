"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_INVALID_SIZE_FORMAT = "INVALID_SIZE_FORMAT"
ERROR_CODE_INVALID_RESIZE_FLAG = "INVALID_RESIZE_FLAG"
ERROR_CODE_INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
ERROR_CODE_MISSING_EXTENSION = "MISSING_EXTENSION"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"

# Codec Errors
ERROR_CODE_UNKNOWN_IMAGE_FORMAT = "UNKNOWN_IMAGE_FORMAT"

# Storage Errors
ERROR_CODE_STORAGE_IO = "STORAGE_IO_ERROR"
ERROR_CODE_DIRECTORY_CREATE_FAILED = "DIRECTORY_CREATE_FAILED"
ERROR_CODE_IMAGE_WRITE_FAILED = "IMAGE_WRITE_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"
ERROR_CODE_NOIMAGE_UNAVAILABLE = "NOIMAGE_UNAVAILABLE"


# ============================================================================
# Identifier Layout
# ============================================================================

PREFIX_LENGTH = 2
CROP_TOKEN = "crop"
QUALITY_TOKEN = "q"
FLAG_SEPARATOR = "+"
SANITIZE_ALLOWED_PUNCTUATION = "._"

# Optional transform suffix plus extension at the end of a file name.
# Every alternative starts with a dot.
TRANSFORM_SUFFIX_PATTERN = (
    r"(?:\.(?P<width>\d+)x(?P<height>\d+)"
    rf"(?:{CROP_TOKEN}(?P<left>\d+)x(?P<top>\d+)x(?P<right>\d+)x(?P<bottom>\d+))?"
    r"(?:\.(?P<flag>[a-z_]+(?:\+[a-z_]+)*))?)?"
    rf"(?:\.{QUALITY_TOKEN}(?P<quality>\d+))?"
    r"\.(?P<extension>[^./]+)$"
)
TRANSFORM_ESCAPE_SEPARATOR = "-"

# Query parameter carrying the real identifier behind a friendly URL
FRIENDLY_URL_QUERY_PARAM = "_image_storage"

TERMINAL_LINK = "#"
MESSAGE_IMAGE_NOT_FOUND = "Can not find image"
MESSAGE_UNKNOWN_FORMAT = "Unknown type of file"


# ============================================================================
# Resize Flags
# ============================================================================

FLAG_FIT = "fit"
FLAG_FILL = "fill"
FLAG_EXACT = "exact"
FLAG_STRETCH = "stretch"
FLAG_SHRINK_ONLY = "shrink_only"

RESIZE_FLAGS: Final[dict[str, int]] = {
    FLAG_FIT: 0,
    FLAG_FILL: 4,
    FLAG_EXACT: 8,
    FLAG_STRETCH: 2,
    FLAG_SHRINK_ONLY: 1,
}

BIT_SHRINK_ONLY = RESIZE_FLAGS[FLAG_SHRINK_ONLY]
BIT_STRETCH = RESIZE_FLAGS[FLAG_STRETCH]
BIT_FILL = RESIZE_FLAGS[FLAG_FILL]
BIT_EXACT = RESIZE_FLAGS[FLAG_EXACT]

DEFAULT_TRANSFORM = FLAG_FIT


# ============================================================================
# Formats & Quality
# ============================================================================

# Quality meaning is format specific: 0-100 for jpeg/webp/avif,
# 0-9 compression level for png, not applicable for gif.
DEFAULT_QUALITY: Final[dict[str, int | None]] = {
    "jpeg": 85,
    "png": 6,
    "webp": 80,
    "avif": 30,
    "gif": None,
}

FALLBACK_QUALITY = 85

MODERN_FORMAT = "webp"
CONVERTIBLE_EXTENSIONS: Final[frozenset[str]] = frozenset({"jpg", "jpeg", "png"})

MIME_TYPE_EXTENSION_MAP: Final[dict[str, tuple[str, ...]]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
    "image/avif": ("avif",),
    "image/svg+xml": ("svg",),
}


# ============================================================================
# Filesystem
# ============================================================================

DEFAULT_DATA_DIR = "data"
DEFAULT_NOIMAGE_IDENTIFIER = "noimage/03/no-image.png"
DEFAULT_DIR_MODE = 0o775
TEMP_FILE_PREFIX = ".tmp-"


# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_DATA_PATH = "IMAGE_STORAGE_DATA_PATH"
ENV_DATA_DIR = "IMAGE_STORAGE_DATA_DIR"
ENV_ORIG_PATH = "IMAGE_STORAGE_ORIG_PATH"
ENV_FRIENDLY_URL = "IMAGE_STORAGE_FRIENDLY_URL"
ENV_DEFAULT_TRANSFORM = "IMAGE_STORAGE_DEFAULT_TRANSFORM"
ENV_NOIMAGE_IDENTIFIER = "IMAGE_STORAGE_NOIMAGE_IDENTIFIER"
ENV_MODERN_FORMAT = "IMAGE_STORAGE_MODERN_FORMAT"

TRUTHY_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


# ============================================================================
# Usage Examples (attached to size format errors)
# ============================================================================

USAGE_EXAMPLE_SINGLE_SIZE = "storage.from_identifier(ImageRequest(path=identifier, size='800x600'))"
USAGE_EXAMPLE_SRCSET = (
    "storage.create_srcset(identifier, ['400', '800x600', '1200'], path_prefix='/')"
)
