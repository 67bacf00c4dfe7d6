from __future__ import annotations

import pytest

from static_embedder.build.encoder import DEFAULT_MIN_GAIN_BYTES, compute_etag, encode, render_file_module
from static_embedder.runtime.codec import (
    WRAP_COLUMNS,
    Compression,
    compress,
    decode_base64,
    decompress,
    wrap,
)
from static_embedder.runtime.store import FileMeta


def _decode(content) -> bytes:
    raw = decode_base64(content.encoded)
    if content.compression is None:
        return raw
    return decompress(raw, content.compression)


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"x",
        b"<html>" + b"hello world " * 500 + b"</html>",
        bytes(range(256)) * 3,
    ],
)
def test_encode_round_trips_through_selected_storage(data: bytes) -> None:
    content = encode(data)
    assert content.size == len(data)
    assert _decode(content) == data


@pytest.mark.parametrize("compression", list(Compression))
def test_every_compression_tag_round_trips(compression: Compression) -> None:
    data = b"abcdefgh" * 1000
    assert decompress(compress(data, compression), compression) == data
    content = encode(data, compression=compression)
    assert content.compression is compression
    assert _decode(content) == data


def test_gain_threshold_boundary_selects_compression_only_at_threshold() -> None:
    data = b"static asset body " * 64
    gain = len(data) - len(compress(data, Compression.GZIP))
    assert gain > 0

    at_threshold = encode(data, min_gain_bytes=gain)
    one_short = encode(data, min_gain_bytes=gain + 1)

    assert at_threshold.compression is Compression.GZIP
    assert one_short.compression is None
    assert one_short.stored_size == len(data)
    assert at_threshold.size == one_short.size == len(data)


def test_incompressible_input_is_stored_raw() -> None:
    data = bytes(range(256))
    content = encode(data)
    assert content.compression is None
    assert decode_base64(content.encoded) == data
    assert DEFAULT_MIN_GAIN_BYTES == 200


def test_gzip_output_is_reproducible() -> None:
    data = b"reproducible " * 200
    assert compress(data, Compression.GZIP) == compress(data, Compression.GZIP)
    assert encode(data) == encode(data)


def test_wrap_is_reversed_by_concatenation() -> None:
    content = encode(bytes(range(256)) * 4)
    lines = wrap(content.encoded)
    assert all(len(line) == WRAP_COLUMNS for line in lines[:-1])
    assert 0 < len(lines[-1]) <= WRAP_COLUMNS
    assert "".join(lines) == content.encoded
    assert decode_base64("\n".join(lines)) == decode_base64(content.encoded)


def test_decode_rejects_garbage_payload() -> None:
    with pytest.raises(ValueError, match="ENCODED_PAYLOAD_INVALID"):
        decode_base64("not*base64")


def test_compression_parse_accepts_tags_and_rejects_unknown() -> None:
    assert Compression.parse("gzip") is Compression.GZIP
    assert Compression.parse("Deflate-Raw") is Compression.DEFLATE_RAW
    assert Compression.parse(None) is None
    assert Compression.parse("none") is None
    with pytest.raises(ValueError, match="COMPRESSION_UNSUPPORTED"):
        Compression.parse("brotli")


def test_etag_is_stable_and_quoted() -> None:
    etag = compute_etag(b"hello")
    assert etag == compute_etag(b"hello")
    assert etag != compute_etag(b"hellp")
    assert etag.startswith('"5-') and etag.endswith('"')


def test_rendered_module_exposes_equivalent_meta() -> None:
    data = b"body { color: red; }\n" * 120
    content = encode(data)
    source = render_file_module(content, header="Generated for tests. Do not edit.")

    assert source.startswith("# Generated for tests. Do not edit.\n")
    assert all(len(line) <= WRAP_COLUMNS + 10 for line in source.splitlines())
    namespace: dict = {}
    exec(compile(source, "<generated>", "exec"), namespace)
    meta = namespace["META"]
    assert isinstance(meta, FileMeta)
    assert meta.size == len(data)
    assert meta.etag == content.etag
    assert meta.compression is content.compression
    assert meta.mtime is None
    assert "".join(meta.encoded.split()) == content.encoded


def test_rendered_module_for_empty_file() -> None:
    source = render_file_module(encode(b""), header="h")
    namespace: dict = {}
    exec(compile(source, "<generated>", "exec"), namespace)
    assert namespace["META"].encoded == ""
    assert namespace["META"].size == 0
