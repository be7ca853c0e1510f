"""
Command line interface for the image storage.

Run:
    IMAGE_STORAGE_DATA_PATH=www/data image-storage save photo.jpg --namespace users
    image-storage resolve users/ab/photo.jpg --size 400x300 --flag exact
    image-storage srcset users/ab/photo.jpg 400 800 1200 --prefix /static
    image-storage delete users/ab/photo.jpg --only-changed
"""

import argparse
from pathlib import Path
import sys
from typing import Sequence

from aws_lambda_powertools import Logger

from image_storage.models.config import StorageSettings
from image_storage.models.errors import ImageStorageError
from image_storage.models.request import ImageRequest
from image_storage.storage import ImageStorage

logger = Logger(service="image-storage")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="image-storage",
        description="Store images and generate resized variants",
    )
    parser.add_argument(
        "--data-path",
        type=Path,
        default=None,
        help="Derivative tree root (defaults to IMAGE_STORAGE_DATA_PATH)",
    )
    parser.add_argument(
        "--orig-path",
        type=Path,
        default=None,
        help="Originals tree root (defaults to the data path)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    save = subparsers.add_parser("save", help="Store an original image")
    save.add_argument("file", type=Path, help="Image file to store")
    save.add_argument("--namespace", required=True, help="First identifier segment")
    save.add_argument("--name", default=None, help="File name to store under")
    save.add_argument("--checksum", default=None, help="Precomputed checksum")

    resolve = subparsers.add_parser("resolve", help="Resolve (and render) an image")
    resolve.add_argument("identifier", help="Image identifier")
    resolve.add_argument("--size", default=None, help="Target size, e.g. 800x600")
    _add_transform_args(resolve)

    srcset = subparsers.add_parser("srcset", help="Print a srcset attribute value")
    srcset.add_argument("identifier", help="Image identifier")
    srcset.add_argument("sizes", nargs="+", help="Widths or WIDTHxHEIGHT sizes")
    srcset.add_argument("--prefix", default="", help="Path prefix for every link")
    _add_transform_args(srcset)

    delete = subparsers.add_parser("delete", help="Delete an image and its variants")
    delete.add_argument("identifier", help="Image identifier")
    delete.add_argument(
        "--only-changed",
        action="store_true",
        help="Keep the original, delete generated variants only",
    )

    return parser.parse_args(argv)


def _add_transform_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--flag", default=None, help="Resize flag, e.g. fit+shrink_only")
    parser.add_argument("--quality", type=int, default=None, help="Quality override")
    parser.add_argument(
        "--no-modern",
        dest="convert_to_modern",
        action="store_false",
        help="Keep the source format instead of converting to webp",
    )


def load_settings(args: argparse.Namespace) -> StorageSettings:
    if args.data_path is None:
        return StorageSettings.from_env()
    return StorageSettings(data_path=args.data_path, orig_path=args.orig_path)


def run(args: argparse.Namespace, storage: ImageStorage) -> int:
    if args.command == "save":
        handle = storage.save_content(
            args.file.read_bytes(),
            args.name or args.file.name,
            args.namespace,
            checksum=args.checksum,
        )
        print(handle.identifier)
        return 0

    if args.command == "resolve":
        handle = storage.from_identifier(
            ImageRequest(
                path=args.identifier,
                size=args.size,
                flag=args.flag,
                quality=args.quality,
                convert_to_modern=args.convert_to_modern,
            )
        )
        if not handle.is_ok:
            print(handle.error, file=sys.stderr)
            return 1
        print(handle.path)
        return 0

    if args.command == "srcset":
        print(
            storage.create_srcset(
                args.identifier,
                args.sizes,
                args.prefix,
                flag=args.flag,
                quality=args.quality,
                convert_to_modern=args.convert_to_modern,
            )
        )
        return 0

    storage.delete(args.identifier, only_changed=args.only_changed)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        storage = ImageStorage(load_settings(args))
        return run(args, storage)
    except (ImageStorageError, RuntimeError, OSError) as exc:
        logger.exception("Command failed", extra={"command": args.command})
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
