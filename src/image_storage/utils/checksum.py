"""Default checksum functions used to shard stored originals.

Any ``(path) -> str`` and ``(bytes) -> str`` pair may replace these; only the
first two characters of the digest are used as the directory prefix.
"""

import hashlib
from collections.abc import Callable
from pathlib import Path

FileHasher = Callable[[str], str]
ContentHasher = Callable[[bytes], str]

_CHUNK_SIZE = 64 * 1024


def sha1_file(path: str) -> str:
    """Return the hex SHA-1 digest of a file, read in chunks."""
    digest = hashlib.sha1()  # noqa: S324 - sharding only
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def sha1_content(content: bytes) -> str:
    """Return the hex SHA-1 digest of raw bytes."""
    return hashlib.sha1(content).hexdigest()  # noqa: S324 - sharding only
