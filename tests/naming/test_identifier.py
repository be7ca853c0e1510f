import pytest

from image_storage.models.descriptor import TransformDescriptor
from image_storage.models.errors import (
    IdentifierError,
    ResizeFlagError,
    SizeFormatError,
)
from image_storage.naming.identifier import (
    decode,
    decode_flag,
    decode_size_spec,
    encode,
    escape_name,
    transform_pattern,
)


class TestDecode:
    def test_plain_original(self) -> None:
        descriptor = decode("users/ab/photo.jpg")

        assert descriptor.namespace == "users"
        assert descriptor.prefix == "ab"
        assert descriptor.name == "photo"
        assert descriptor.extension == "jpg"
        assert descriptor.size is None
        assert descriptor.crop is None
        assert descriptor.flag is None
        assert descriptor.quality is None

    def test_full_transform_suffix(self) -> None:
        descriptor = decode("users/ab/photo.400x300crop1x2x3x4.fit+shrink_only.q80.webp")

        assert descriptor.name == "photo"
        assert descriptor.size == (400, 300)
        assert descriptor.crop == (1, 2, 3, 4)
        assert descriptor.flag == "fit+shrink_only"
        assert descriptor.quality == 80
        assert descriptor.extension == "webp"
        assert descriptor.original == "users/ab/photo.webp"

    def test_quality_without_size(self) -> None:
        descriptor = decode("users/ab/photo.q80.jpg")

        assert descriptor.name == "photo"
        assert descriptor.size is None
        assert descriptor.quality == 80

    def test_collision_suffix_stays_in_name(self) -> None:
        descriptor = decode("users/ab/photo.2.jpg")

        assert descriptor.name == "photo.2"
        assert descriptor.size is None

    def test_multi_level_namespace(self) -> None:
        descriptor = decode("gallery/2024/ab/photo.jpg")

        assert descriptor.namespace == "gallery/2024"
        assert descriptor.prefix == "ab"

    def test_extension_is_lower_cased(self) -> None:
        assert decode("users/ab/photo.JPG").extension == "jpg"

    @pytest.mark.parametrize(
        "identifier",
        ["photo.jpg", "ab/photo.jpg", "users/ab/photo", "users//photo.jpg", "users/../photo.jpg"],
    )
    def test_invalid_identifier(self, identifier: str) -> None:
        with pytest.raises(IdentifierError):
            decode(identifier)

    def test_unknown_flag_in_identifier(self) -> None:
        with pytest.raises(ResizeFlagError):
            decode("users/ab/photo.100x100.zzz.jpg")


class TestEncode:
    @pytest.mark.parametrize(
        "identifier",
        [
            "users/ab/photo.jpg",
            "users/ab/photo.2.jpg",
            "users/ab/photo.400x300.webp",
            "users/ab/photo.400x300.fill.webp",
            "users/ab/photo.400x300crop0x0x200x100.exact.q75.webp",
            "users/ab/photo.q9.png",
            "gallery/2024/ab/my-photo_1.800x600.fit+shrink_only.jpg",
        ],
    )
    def test_decode_then_encode_is_identity(self, identifier: str) -> None:
        assert encode(decode(identifier)) == identifier

    def test_flag_is_only_encoded_with_size(self) -> None:
        descriptor = decode("users/ab/photo.400x300.fill.jpg")
        descriptor.set_size(None)

        assert encode(descriptor) == "users/ab/photo.jpg"

    def test_transform_fields_in_fixed_order(self) -> None:
        descriptor = decode("users/ab/photo.jpg")
        descriptor.set_quality(70)
        descriptor.set_size((10, 20))
        descriptor.set_flag("exact")
        descriptor.set_crop((1, 1, 5, 5))
        descriptor.set_extension("webp")

        assert encode(descriptor) == "users/ab/photo.10x20crop1x1x5x5.exact.q70.webp"

    @pytest.mark.parametrize(
        "fields",
        [
            {"name": "photo"},
            {"name": "photo.2", "quality": 85},
            {"name": "a-10x10", "size": (50, 50), "flag": "fit", "quality": 80},
            {"name": "pic-q5", "size": (10, 20), "crop": (0, 0, 5, 5)},
            {"name": "x-20x20.fit", "size": (20, 20), "flag": "fill+shrink_only"},
            {"name": "v1.0", "extension": "webp", "quality": 0},
        ],
    )
    def test_built_descriptors_round_trip(self, fields: dict) -> None:
        values = {"namespace": "gallery/2024", "prefix": "ab", "extension": "jpg"}
        values.update(fields)
        descriptor = TransformDescriptor(**values)

        assert decode(encode(descriptor)) == descriptor


class TestDecodeSizeSpec:
    def test_width_and_height(self) -> None:
        assert decode_size_spec("800x600") == (800, 600, None)

    def test_with_crop(self) -> None:
        assert decode_size_spec("800x600crop10x20x30x40") == (800, 600, (10, 20, 30, 40))

    def test_error_references_raw_value(self) -> None:
        with pytest.raises(SizeFormatError) as exc_info:
            decode_size_spec("abcx")

        assert "abcx" in exc_info.value.message
        assert exc_info.value.details["size"] == "abcx"
        assert len(exc_info.value.details["examples"]) == 2
        assert exc_info.value.error_code == "INVALID_SIZE_FORMAT"

    @pytest.mark.parametrize("raw", ["800x", "x600", "0x600", "800x0", "800", "", "800x600junk"])
    def test_rejects_incomplete_sizes(self, raw: str) -> None:
        with pytest.raises(SizeFormatError):
            decode_size_spec(raw)


class TestDecodeFlag:
    def test_single_flags(self) -> None:
        assert decode_flag("fit") == 0
        assert decode_flag("shrink_only") == 1
        assert decode_flag("stretch") == 2
        assert decode_flag("fill") == 4
        assert decode_flag("exact") == 8

    def test_combined_flags(self) -> None:
        assert decode_flag("fit+shrink_only") == 1
        assert decode_flag("fill+shrink_only") == 5

    def test_unknown_token_is_error(self) -> None:
        with pytest.raises(ResizeFlagError):
            decode_flag("zzz")

    def test_unknown_sub_token_is_error(self) -> None:
        with pytest.raises(ResizeFlagError) as exc_info:
            decode_flag("fit+zzz")

        assert exc_info.value.details["token"] == "zzz"

    def test_custom_table(self) -> None:
        assert decode_flag("cover", {"cover": 4}) == 4


class TestTransformPattern:
    def test_matches_original_and_derivatives(self) -> None:
        pattern = transform_pattern("photo")

        assert pattern.match("photo.jpg")
        assert pattern.match("photo.400x300.fit.q80.webp")
        assert pattern.match("photo.400x300crop0x0x10x10.exact.webp")

    def test_ignores_other_names(self) -> None:
        pattern = transform_pattern("photo")

        assert not pattern.match("photo.2.jpg")
        assert not pattern.match("photo2.jpg")
        assert not pattern.match("other.jpg")

    def test_matches_any_extension(self) -> None:
        match = transform_pattern("photo").match("photo.png")

        assert match is not None
        assert match.group("extension") == "png"
        assert match.group("width") is None


class TestEscapeName:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.10x10", "a-10x10"),
            ("pic.q5", "pic-q5"),
            ("x.20x20.fit", "x-20x20.fit"),
            ("a.10x10.q5", "a-10x10-q5"),
            ("a.10x10crop1x1x2x2.fill", "a-10x10crop1x1x2x2.fill"),
        ],
    )
    def test_transform_tails_are_rewritten(self, name: str, expected: str) -> None:
        assert escape_name(name) == expected

    @pytest.mark.parametrize("name", ["photo", "photo.2", "v1.0", "my-photo_1", "a.10x10crop"])
    def test_plain_names_are_kept(self, name: str) -> None:
        assert escape_name(name) == name

    def test_escaped_name_decodes_as_original(self) -> None:
        descriptor = decode(f"users/ab/{escape_name('a.10x10')}.jpg")

        assert descriptor.name == "a-10x10"
        assert descriptor.size is None
