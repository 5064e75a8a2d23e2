"""
Checksum computation for files and byte strings.

Files are streamed in fixed-size chunks so memory use stays bounded
regardless of file size.
"""

from __future__ import annotations

import hashlib
import zlib
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Protocol

import xxhash
from pydantic import BaseModel, ConfigDict, Field

from artsum.core.errors import ChecksumIOError

DEFAULT_CHUNK_SIZE = 65536


class ChecksumAlgorithm(str, Enum):
    """Supported digest algorithms."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"
    BLAKE2B512 = "blake2b512"
    BLAKE2S256 = "blake2s256"
    CRC32 = "crc32"
    XXH64 = "xxh64"
    XXH3_64 = "xxh3_64"
    XXH128 = "xxh128"

    @classmethod
    def default(cls) -> ChecksumAlgorithm:
        return cls.SHA512

    @property
    def digest_size(self) -> int:
        """Digest length in bytes."""
        return _DIGEST_SIZES[self]

    @property
    def hex_width(self) -> int:
        """Width of the lowercase hex encoding."""
        return self.digest_size * 2

    def __str__(self) -> str:
        return self.value


_DIGEST_SIZES = {
    ChecksumAlgorithm.MD5: 16,
    ChecksumAlgorithm.SHA1: 20,
    ChecksumAlgorithm.SHA256: 32,
    ChecksumAlgorithm.SHA512: 64,
    ChecksumAlgorithm.BLAKE2B512: 64,
    ChecksumAlgorithm.BLAKE2S256: 32,
    ChecksumAlgorithm.CRC32: 4,
    ChecksumAlgorithm.XXH64: 8,
    ChecksumAlgorithm.XXH3_64: 8,
    ChecksumAlgorithm.XXH128: 16,
}


class ChecksumMode(str, Enum):
    """How file bytes are interpreted before hashing."""

    BINARY = "binary"
    TEXT = "text"

    @classmethod
    def default(cls) -> ChecksumMode:
        return cls.BINARY

    @property
    def flag(self) -> str:
        """Single-character marker used in manifest tokens."""
        return "b" if self is ChecksumMode.BINARY else "t"

    @classmethod
    def from_flag(cls, flag: str) -> ChecksumMode:
        for mode in cls:
            if mode.flag == flag:
                return mode
        raise ValueError(f"Unknown checksum mode flag: {flag!r}")

    def __str__(self) -> str:
        return self.value


class Checksum(BaseModel):
    """
    A digest together with the algorithm and mode that produced it.

    Two checksums are equal only when all three fields match, since the
    binary and text digests of one file differ.
    """

    model_config = ConfigDict(frozen=True)

    algorithm: ChecksumAlgorithm = Field(description="Digest algorithm")
    mode: ChecksumMode = Field(default=ChecksumMode.BINARY, description="Byte mode")
    digest: bytes = Field(description="Raw digest bytes")

    @property
    def hexdigest(self) -> str:
        return self.digest.hex()

    def __str__(self) -> str:
        return f"{self.algorithm.value}:{self.mode.flag}:{self.hexdigest}"

    @classmethod
    def from_hex(
        cls,
        hexdigest: str,
        algorithm: ChecksumAlgorithm,
        mode: ChecksumMode = ChecksumMode.BINARY,
    ) -> Checksum:
        """
        Build a checksum from its hex encoding.

        Args:
            hexdigest: Hex-encoded digest (either case).
            algorithm: Algorithm the digest belongs to.
            mode: Byte mode the digest was computed in.

        Returns:
            Checksum instance.

        Raises:
            ValueError: If the hex is malformed or has the wrong width.
        """
        if len(hexdigest) != algorithm.hex_width:
            raise ValueError(
                f"Expected {algorithm.hex_width} hex characters for {algorithm}, "
                f"got {len(hexdigest)}"
            )
        try:
            digest = bytes.fromhex(hexdigest)
        except ValueError:
            raise ValueError(f"Invalid hex digest: {hexdigest!r}") from None
        return cls(algorithm=algorithm, mode=mode, digest=digest)

    @classmethod
    def parse_token(cls, token: str) -> Checksum:
        """
        Parse the ``<algorithm>:<b|t>:<hex>`` form produced by ``str()``.

        Raises:
            ValueError: If the token is malformed.
        """
        parts = token.split(":")
        if len(parts) != 3:
            raise ValueError(f"Malformed checksum token: {token!r}")
        algorithm_name, flag, hexdigest = parts
        try:
            algorithm = ChecksumAlgorithm(algorithm_name.lower())
        except ValueError:
            raise ValueError(f"Unknown checksum algorithm: {algorithm_name!r}") from None
        return cls.from_hex(hexdigest, algorithm, ChecksumMode.from_flag(flag))


class Hasher(Protocol):
    def update(self, data: bytes) -> None:
        ...

    def digest(self) -> bytes:
        ...


class _Crc32Hasher:
    """zlib CRC-32 behind the hashlib update/digest interface."""

    def __init__(self) -> None:
        self._value = 0

    def update(self, data: bytes) -> None:
        self._value = zlib.crc32(data, self._value)

    def digest(self) -> bytes:
        return self._value.to_bytes(4, "big")


def new_hasher(algorithm: ChecksumAlgorithm) -> Hasher:
    """Create an incremental hasher for an algorithm."""
    if algorithm is ChecksumAlgorithm.MD5:
        return hashlib.md5()
    if algorithm is ChecksumAlgorithm.SHA1:
        return hashlib.sha1()
    if algorithm is ChecksumAlgorithm.SHA256:
        return hashlib.sha256()
    if algorithm is ChecksumAlgorithm.SHA512:
        return hashlib.sha512()
    if algorithm is ChecksumAlgorithm.BLAKE2B512:
        return hashlib.blake2b(digest_size=64)
    if algorithm is ChecksumAlgorithm.BLAKE2S256:
        return hashlib.blake2s(digest_size=32)
    if algorithm is ChecksumAlgorithm.CRC32:
        return _Crc32Hasher()
    if algorithm is ChecksumAlgorithm.XXH64:
        return xxhash.xxh64()
    if algorithm is ChecksumAlgorithm.XXH3_64:
        return xxhash.xxh3_64()
    if algorithm is ChecksumAlgorithm.XXH128:
        return xxhash.xxh3_128()
    raise ValueError(f"Unsupported checksum algorithm: {algorithm}")


def normalize_line_endings(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Rewrite CRLF to LF across a stream of chunks.

    A CR at the end of one chunk is held back until the next chunk shows
    whether it starts a CRLF pair.
    """
    pending_cr = False
    for chunk in chunks:
        if pending_cr:
            chunk = b"\r" + chunk
            pending_cr = False
        if chunk.endswith(b"\r"):
            chunk = chunk[:-1]
            pending_cr = True
        yield chunk.replace(b"\r\n", b"\n")
    if pending_cr:
        yield b"\r"


def _read_chunks(handle, chunk_size: int) -> Iterator[bytes]:
    for chunk in iter(lambda: handle.read(chunk_size), b""):
        yield chunk


def compute_checksum(
    path: Path,
    algorithm: ChecksumAlgorithm = ChecksumAlgorithm.SHA512,
    mode: ChecksumMode = ChecksumMode.BINARY,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Checksum:
    """
    Compute the checksum of a file's contents.

    Args:
        path: Path to file.
        algorithm: Digest algorithm.
        mode: Binary hashes bytes as-is; text normalizes line endings first.
        chunk_size: Read size in bytes.

    Returns:
        Checksum of the file.

    Raises:
        ChecksumIOError: If the file cannot be opened or read.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    hasher = new_hasher(algorithm)
    try:
        with open(path, "rb") as f:
            chunks: Iterable[bytes] = _read_chunks(f, chunk_size)
            if mode is ChecksumMode.TEXT:
                chunks = normalize_line_endings(chunks)
            for chunk in chunks:
                hasher.update(chunk)
    except OSError as e:
        raise ChecksumIOError(Path(path), e) from e

    return Checksum(algorithm=algorithm, mode=mode, digest=hasher.digest())


def compute_bytes_checksum(
    data: bytes,
    algorithm: ChecksumAlgorithm = ChecksumAlgorithm.SHA512,
    mode: ChecksumMode = ChecksumMode.BINARY,
) -> Checksum:
    """Compute the checksum of in-memory content."""
    hasher = new_hasher(algorithm)
    if mode is ChecksumMode.TEXT:
        data = data.replace(b"\r\n", b"\n")
    hasher.update(data)
    return Checksum(algorithm=algorithm, mode=mode, digest=hasher.digest())
