from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

from image_storage.models.config import StorageSettings
from image_storage.models.image import ImageHandle
from image_storage.models.upload import UploadSource
from image_storage.storage import ImageStorage


class TestImageStorage:
    def test_save_upload_then_resize(
        self, storage: ImageStorage, tmp_path: Path, image_bytes: Callable[..., bytes]
    ) -> None:
        upload_file = tmp_path / "php-upload"
        upload_file.write_bytes(image_bytes(640, 480))

        original = storage.save_upload(
            UploadSource(temporary_file=upload_file, untrusted_name="Holiday.jpg"), "trips"
        )
        thumb = storage.from_identifier([original.identifier, "64x64", "exact"])

        assert original.name == "holiday.jpg"
        assert thumb.identifier.endswith("holiday.64x64.exact.q80.webp")
        assert thumb.path.exists()

    def test_from_identifier_accepts_mapping(self, storage: ImageStorage, stored_photo: str) -> None:
        handle = storage.from_identifier({"path": stored_photo, "size": "50x50", "convertToWebp": False})

        assert handle.identifier.endswith(".50x50.fit.q85.jpg")

    def test_get_no_image(self, storage: ImageStorage) -> None:
        handle = storage.get_no_image()

        assert isinstance(handle, ImageHandle)
        assert handle.identifier == "noimage/03/no-image.png"

        descriptor, path = storage.get_no_image(materialize=False)
        assert descriptor.original == "noimage/03/no-image.png"
        assert path.exists()

    def test_delete_by_handle(self, storage: ImageStorage, image_bytes: Callable[..., bytes]) -> None:
        original = storage.save_content(image_bytes(), "photo.jpg", "users")
        thumb = storage.from_identifier([original.identifier, "100x100"])

        storage.delete(original)

        assert not original.path.exists()
        assert not thumb.path.exists()

    def test_delete_only_changed(self, storage: ImageStorage, image_bytes: Callable[..., bytes]) -> None:
        original = storage.save_content(image_bytes(), "photo.jpg", "users")
        thumb = storage.from_identifier([original.identifier, "100x100"])

        storage.delete(original.identifier, only_changed=True)

        assert original.path.exists()
        assert not thumb.path.exists()

    def test_set_friendly_url(self, storage: ImageStorage, stored_photo: str) -> None:
        storage.set_friendly_url(True)
        friendly = storage.from_identifier([stored_photo, "100x100"])
        storage.set_friendly_url(False)
        plain = storage.from_identifier([stored_photo, "100x100"])

        assert "?_image_storage=" in friendly.create_link()
        assert "?" not in plain.create_link()

    def test_custom_hashers(self, settings: StorageSettings, image_bytes: Callable[..., bytes]) -> None:
        storage = ImageStorage(settings, hash_content=lambda content: "ff00")

        handle = storage.save_content(image_bytes(), "photo.jpg", "users")

        assert handle.identifier == "users/ff/photo.jpg"

    def test_srcset_uses_codec_dimensions(self, settings: StorageSettings, stored_photo: str) -> None:
        storage = ImageStorage(settings)

        with patch.object(storage.codec, "probe_dimensions", return_value=(100, 50)) as probe:
            assert storage.srcset.normalize_size(stored_photo, "200") == "200x100"

        probe.assert_called_once()
