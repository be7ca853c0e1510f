from collections.abc import Mapping

from image_storage.utils.constants import MIME_TYPE_EXTENSION_MAP

MAGIC_BYTES: Mapping[bytes, str] = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
    b"RIFF": "image/webp",
}


def detect_mime_type(file_data: bytes) -> str:
    for signature, mime in MAGIC_BYTES.items():
        if file_data.startswith(signature):
            if mime == "image/webp" and file_data[8:12] != b"WEBP":
                continue
            return mime

    raise ValueError("Unsupported or unknown file type")


def extension_for_mime_type(mime_type: str) -> str:
    """Return the preferred file extension for a MIME type."""
    extensions = MIME_TYPE_EXTENSION_MAP.get(mime_type)
    if not extensions:
        raise ValueError(f"No extension known for MIME type '{mime_type}'")
    return extensions[0]


def mime_type_for_extension(extension: str) -> str:
    ext = extension.lower().lstrip(".")
    for mime, extensions in MIME_TYPE_EXTENSION_MAP.items():
        if ext in extensions:
            return mime
    return "application/octet-stream"
