"""Custom exception classes for the image storage."""

from typing import Any

from image_storage.utils.constants import (
    ERROR_CODE_INVALID_IDENTIFIER,
    ERROR_CODE_INVALID_RESIZE_FLAG,
    ERROR_CODE_INVALID_SIZE_FORMAT,
    ERROR_CODE_MISSING_EXTENSION,
    ERROR_CODE_NOIMAGE_UNAVAILABLE,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_STORAGE_IO,
    ERROR_CODE_UNKNOWN_IMAGE_FORMAT,
    ERROR_CODE_VALIDATION_FAILED,
)


class ImageStorageError(Exception):
    """
    Base exception for all image storage errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ValidationError(ImageStorageError):
    """Raised when caller input is structurally invalid."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class SizeFormatError(ValidationError):
    """Raised when a size specification cannot be parsed.

    The offending raw value is kept in ``details["size"]`` together with
    usage examples in ``details["examples"]``.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INVALID_SIZE_FORMAT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ResizeFlagError(ValidationError):
    """Raised when a resize flag contains an unknown token."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INVALID_RESIZE_FLAG,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ImageExtensionError(ValidationError):
    """Raised when the extension of a saved image cannot be determined."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_MISSING_EXTENSION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class IdentifierError(ValidationError):
    """Raised when an identifier does not follow the storage layout."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INVALID_IDENTIFIER,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotFoundError(ImageStorageError):
    """Raised when a requested image file is not found."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ImageDecodeError(ImageStorageError):
    """Raised when source bytes are not a supported image."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_UNKNOWN_IMAGE_FORMAT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class StorageIOError(ImageStorageError):
    """Raised when a directory or file operation on the storage fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_STORAGE_IO,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class FallbackError(ImageStorageError):
    """Raised when the placeholder image cannot be created."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_NOIMAGE_UNAVAILABLE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
