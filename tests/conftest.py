"""
Pytest configuration and fixtures for image-storage tests.
Provides temporary storage trees and in-memory test images.
"""

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from image_storage.models.config import StorageSettings
from image_storage.storage import ImageStorage


@pytest.fixture(scope="function")
def data_path(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture(scope="function")
def orig_path(tmp_path: Path) -> Path:
    return tmp_path / "orig"


@pytest.fixture(scope="function")
def settings(data_path: Path) -> StorageSettings:
    """Originals and derivatives share one tree."""
    return StorageSettings(data_path=data_path)


@pytest.fixture(scope="function")
def split_settings(data_path: Path, orig_path: Path) -> StorageSettings:
    """Originals and derivatives live in separate trees."""
    return StorageSettings(data_path=data_path, orig_path=orig_path)


@pytest.fixture(scope="function")
def storage(settings: StorageSettings) -> ImageStorage:
    return ImageStorage(settings)


@pytest.fixture(scope="function")
def split_storage(split_settings: StorageSettings) -> ImageStorage:
    return ImageStorage(split_settings)


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    """Factory producing encoded solid-colour images."""

    def _make(
        width: int = 1200,
        height: int = 600,
        fmt: str = "JPEG",
        mode: str = "RGB",
        color: tuple[int, ...] = (180, 40, 40),
    ) -> bytes:
        buffer = io.BytesIO()
        Image.new(mode, (width, height), color).save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def stored_photo(storage: ImageStorage, image_bytes: Callable[..., bytes]) -> str:
    """Identifier of a 1200x600 JPEG saved in the shared tree."""
    return storage.save_content(image_bytes(), "photo.jpg", "users").identifier
