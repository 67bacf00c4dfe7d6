"""Compression + base64 codec shared by the encoder and the embedded store."""

from __future__ import annotations

import base64
import binascii
import gzip
from enum import Enum
import zlib


WRAP_COLUMNS = 120


class Compression(str, Enum):
    GZIP = "gzip"
    DEFLATE = "deflate"
    DEFLATE_RAW = "deflate-raw"

    @classmethod
    def parse(cls, value: "str | Compression | None") -> "Compression | None":
        if value is None or isinstance(value, Compression):
            return value
        text = str(value).strip().lower()
        if not text or text == "none":
            return None
        try:
            return cls(text)
        except ValueError as exc:
            raise ValueError(f"COMPRESSION_UNSUPPORTED:{value}") from exc


def compress(data: bytes, compression: Compression) -> bytes:
    if compression is Compression.GZIP:
        # Fixed header mtime keeps generated output reproducible.
        return gzip.compress(data, compresslevel=9, mtime=0)
    if compression is Compression.DEFLATE:
        return zlib.compress(data, 9)
    if compression is Compression.DEFLATE_RAW:
        compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
        return compressor.compress(data) + compressor.flush()
    raise ValueError(f"COMPRESSION_UNSUPPORTED:{compression}")


def decompress(data: bytes, compression: Compression) -> bytes:
    if compression is Compression.GZIP:
        return gzip.decompress(data)
    if compression is Compression.DEFLATE:
        return zlib.decompress(data)
    if compression is Compression.DEFLATE_RAW:
        return zlib.decompress(data, -zlib.MAX_WBITS)
    raise ValueError(f"COMPRESSION_UNSUPPORTED:{compression}")


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def wrap(encoded: str, width: int = WRAP_COLUMNS) -> list[str]:
    """Split an encoded payload into fixed-width lines for generated source."""
    if width <= 0:
        raise ValueError("wrap width must be positive")
    return [encoded[i : i + width] for i in range(0, len(encoded), width)]


def decode_base64(encoded: str) -> bytes:
    # Wrapped payloads are re-joined before decoding.
    joined = "".join(encoded.split())
    try:
        return base64.b64decode(joined, validate=True)
    except binascii.Error as exc:
        raise ValueError("ENCODED_PAYLOAD_INVALID") from exc
