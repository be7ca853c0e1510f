import stat
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from image_storage.models.config import StorageSettings
from image_storage.models.errors import (
    IdentifierError,
    NotFoundError,
    ResizeFlagError,
    SizeFormatError,
    StorageIOError,
)
from image_storage.models.image import ImageStatus
from image_storage.models.request import ImageRequest
from image_storage.storage import ImageStorage
from image_storage.utils.files import FILE_MODE


def resolve(storage: ImageStorage, **kwargs):
    return storage.derivatives.resolve(ImageRequest(**kwargs))


class TestPassthrough:
    def test_split_roots_copy_original_verbatim(
        self, split_storage: ImageStorage, image_bytes: Callable[..., bytes]
    ) -> None:
        content = image_bytes()
        identifier = split_storage.save_content(content, "photo.jpg", "users").identifier

        with patch.object(split_storage.codec, "open") as mock_open:
            handle = resolve(split_storage, path=identifier)

        mock_open.assert_not_called()
        assert handle.is_ok
        assert handle.identifier == identifier
        assert handle.path == split_storage.settings.data_path / identifier
        assert handle.path.read_bytes() == content

    def test_shared_root_returns_original(self, storage: ImageStorage, stored_photo: str) -> None:
        handle = resolve(storage, path=stored_photo)

        assert handle.identifier == stored_photo
        assert handle.path.exists()

    def test_missing_original_serves_placeholder(self, storage: ImageStorage) -> None:
        handle = resolve(storage, path="users/ab/missing.jpg")

        assert handle.identifier == "noimage/03/no-image.png"
        assert handle.path.exists()

    def test_empty_identifier_serves_placeholder(self, split_storage: ImageStorage) -> None:
        handle = resolve(split_storage, path=None)

        assert handle.identifier == "noimage/03/no-image.png"
        assert (split_storage.settings.data_path / handle.identifier).exists()

    def test_traversal_is_rejected(self, storage: ImageStorage) -> None:
        with pytest.raises(IdentifierError):
            resolve(storage, path="../../etc/passwd")


class TestResize:
    def test_generates_modern_format(self, storage: ImageStorage, stored_photo: str) -> None:
        handle = resolve(storage, path=stored_photo, size="400x400")

        assert handle.identifier == stored_photo.replace(".jpg", ".400x400.fit.q80.webp")
        with Image.open(handle.path) as img:
            assert img.format == "WEBP"
            assert img.size == (400, 200)

    def test_keeps_format_when_conversion_disabled(
        self, storage: ImageStorage, stored_photo: str
    ) -> None:
        handle = resolve(storage, path=stored_photo, size="400x400", convert_to_modern=False)

        assert handle.identifier.endswith("photo.400x400.fit.q85.jpg")
        with Image.open(handle.path) as img:
            assert img.format == "JPEG"

    def test_quality_override(self, storage: ImageStorage, stored_photo: str) -> None:
        handle = resolve(storage, path=stored_photo, size="400x400", quality=50)

        assert handle.identifier.endswith("photo.400x400.fit.q50.webp")

    def test_exact_flag(self, storage: ImageStorage, stored_photo: str) -> None:
        handle = resolve(storage, path=stored_photo, size="300x300", flag="exact")

        with Image.open(handle.path) as img:
            assert img.size == (300, 300)

    def test_crop_before_resize(self, storage: ImageStorage, stored_photo: str) -> None:
        handle = resolve(storage, path=stored_photo, size="100x100crop0x0x300x300")

        assert "photo.100x100crop0x0x300x300.fit.q80.webp" in handle.identifier
        with Image.open(handle.path) as img:
            assert img.size == (100, 100)

    def test_configured_default_transform(
        self, tmp_path: Path, image_bytes: Callable[..., bytes]
    ) -> None:
        storage = ImageStorage(StorageSettings(data_path=tmp_path, default_transform="fill"))
        identifier = storage.save_content(image_bytes(), "photo.jpg", "users").identifier

        handle = resolve(storage, path=identifier, size="400x400")

        assert ".400x400.fill." in handle.identifier
        with Image.open(handle.path) as img:
            assert img.size == (800, 400)

    def test_second_request_is_cached(self, storage: ImageStorage, stored_photo: str) -> None:
        first = resolve(storage, path=stored_photo, size="400x400")
        mtime = first.path.stat().st_mtime_ns

        with patch.object(storage.codec, "open", wraps=storage.codec.open) as mock_open:
            second = resolve(storage, path=stored_photo, size="400x400")

        mock_open.assert_not_called()
        assert second.path == first.path
        assert second.path.stat().st_mtime_ns == mtime

    def test_codec_work_happens_once(self, storage: ImageStorage, stored_photo: str) -> None:
        with patch.object(storage.codec, "open", wraps=storage.codec.open) as mock_open:
            resolve(storage, path=stored_photo, size="200x200")
            resolve(storage, path=stored_photo, size="200x200")

        assert mock_open.call_count == 1


class TestFallback:
    def test_missing_source_resizes_placeholder(self, storage: ImageStorage) -> None:
        handle = resolve(storage, path="users/ab/missing.jpg", size="100x100")

        assert handle.is_ok
        assert handle.identifier == "noimage/03/no-image.100x100.fit.q6.png"
        with Image.open(handle.path) as img:
            assert img.size == (100, 100)

    def test_crop_is_skipped_for_placeholder(self, storage: ImageStorage) -> None:
        handle = resolve(storage, path=None, size="100x100crop0x0x10x10")

        with Image.open(handle.path) as img:
            assert img.size == (100, 100)


class TestErrors:
    def test_invalid_size(self, storage: ImageStorage, stored_photo: str) -> None:
        with pytest.raises(SizeFormatError) as exc_info:
            resolve(storage, path=stored_photo, size="abcx")

        assert "abcx" in str(exc_info.value)

    def test_unknown_flag(self, storage: ImageStorage, stored_photo: str) -> None:
        with pytest.raises(ResizeFlagError):
            resolve(storage, path=stored_photo, size="100x100", flag="zzz")

    def test_undecodable_source(self, storage: ImageStorage) -> None:
        identifier = storage.save_content(b"not an image", "broken.jpg", "users").identifier

        handle = resolve(storage, path=identifier, size="100x100")

        assert handle.status is ImageStatus.UNKNOWN_FORMAT
        assert handle.create_link() == "#"

    def test_source_vanishing(self, storage: ImageStorage, stored_photo: str) -> None:
        with patch.object(
            storage.codec, "open", side_effect=NotFoundError(message="Image file not found")
        ):
            handle = resolve(storage, path=stored_photo, size="100x100")

        assert handle.status is ImageStatus.NOT_FOUND
        assert handle.error == "Can not find image"

    def test_write_failure_propagates(self, storage: ImageStorage, stored_photo: str) -> None:
        with patch(
            "image_storage.services.derivative_service.replace_atomic",
            side_effect=StorageIOError(message="Unable to write image file"),
        ):
            with pytest.raises(StorageIOError):
                resolve(storage, path=stored_photo, size="100x100")

    def test_unwritable_output_extension(
        self, storage: ImageStorage, image_bytes: Callable[..., bytes]
    ) -> None:
        identifier = storage.save_content(image_bytes(40, 40, fmt="PNG"), "scan.txt", "docs").identifier

        handle = resolve(storage, path=identifier, size="10x10")

        assert handle.status is ImageStatus.UNKNOWN_FORMAT
        assert handle.error == "Unknown type of file"


class TestNaming:
    def test_transform_like_upload_gets_its_own_derivatives(
        self, storage: ImageStorage, image_bytes: Callable[..., bytes]
    ) -> None:
        red = storage.save_content(
            image_bytes(100, 100, color=(255, 0, 0)), "a.jpg", "ns", checksum="ab1"
        )
        blue = storage.save_content(
            image_bytes(100, 100, color=(0, 0, 255)), "a.10x10.jpg", "ns", checksum="ab2"
        )

        red_thumb = resolve(storage, path=red.identifier, size="50x50")
        blue_thumb = resolve(storage, path=blue.identifier, size="50x50")

        assert red_thumb.identifier == "ns/ab/a.50x50.fit.q80.webp"
        assert blue_thumb.identifier == "ns/ab/a-10x10.50x50.fit.q80.webp"
        with Image.open(blue_thumb.path) as img:
            red_channel, _, blue_channel = img.convert("RGB").getpixel((25, 25))
        assert blue_channel > 200
        assert red_channel < 50


class TestFileModes:
    def test_published_files_are_not_private(
        self, split_storage: ImageStorage, image_bytes: Callable[..., bytes]
    ) -> None:
        original = split_storage.save_content(image_bytes(), "photo.jpg", "users")
        passthrough = resolve(split_storage, path=original.identifier)
        derivative = resolve(split_storage, path=original.identifier, size="100x100")

        paths = [
            split_storage.settings.originals_root / original.identifier,
            passthrough.path,
            derivative.path,
        ]
        for path in paths:
            assert stat.S_IMODE(path.stat().st_mode) == FILE_MODE


class TestFriendlyUrl:
    def test_link_exposes_original_name(self, storage: ImageStorage, stored_photo: str) -> None:
        storage.set_friendly_url(True)

        handle = resolve(storage, path=stored_photo, size="400x400")

        namespace_and_prefix = stored_photo.rsplit("/", 1)[0]
        assert handle.create_link() == (
            f"data/{namespace_and_prefix}/photo.webp?_image_storage={handle.identifier}"
        )
