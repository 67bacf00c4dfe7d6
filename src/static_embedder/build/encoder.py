"""Content encoding: raw-vs-compressed choice, base64, generated module text."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import hashlib
import json

from static_embedder.runtime.codec import Compression, compress, encode_base64, wrap


DEFAULT_MIN_GAIN_BYTES = 200
DEFAULT_COMPRESSION = Compression.GZIP


@dataclass(frozen=True)
class EncodedContent:
    size: int
    encoded: str
    compression: Compression | None
    etag: str
    stored_size: int = 0


def compute_etag(data: bytes) -> str:
    digest = hashlib.sha256(data).hexdigest()
    return f'"{len(data):x}-{digest[:32]}"'


def encode(
    data: bytes,
    *,
    compression: Compression = DEFAULT_COMPRESSION,
    min_gain_bytes: int = DEFAULT_MIN_GAIN_BYTES,
) -> EncodedContent:
    """Pick raw or compressed storage for ``data`` and base64 it.

    The compressed candidate wins only when it saves at least ``min_gain_bytes``.
    """
    compressed = compress(data, compression)
    gain = len(data) - len(compressed)
    chosen = compression if gain >= min_gain_bytes else None
    payload = compressed if chosen is not None else data
    return EncodedContent(
        size=len(data),
        encoded=encode_base64(payload),
        compression=chosen,
        etag=compute_etag(data),
        stored_size=len(payload),
    )


def render_file_module(
    content: EncodedContent,
    *,
    header: str,
    mtime: datetime | None = None,
    atime: datetime | None = None,
) -> str:
    """Render the generated module exposing ``META`` for one file."""
    imports = ["from static_embedder.runtime import Compression, FileMeta"]
    if mtime is not None or atime is not None:
        imports.insert(0, "from datetime import datetime")
        imports.insert(1, "")

    lines = [f"# {header}", *imports, "", "META = FileMeta("]
    lines.append(f"    size={content.size},")
    lines.append(f"    etag={_literal(content.etag)},")
    if content.compression is not None:
        lines.append(f"    compression=Compression.{content.compression.name},")
    if atime is not None:
        lines.append(f"    atime=datetime.fromisoformat({_literal(atime.isoformat())}),")
    if mtime is not None:
        lines.append(f"    mtime=datetime.fromisoformat({_literal(mtime.isoformat())}),")
    chunks = wrap(content.encoded)
    if not chunks:
        lines.append('    encoded="",')
    else:
        lines.append("    encoded=(")
        lines.extend(f'        "{chunk}"' for chunk in chunks)
        lines.append("    ),")
    lines.append(")")
    return "\n".join(lines) + "\n"


def _literal(value: str) -> str:
    return json.dumps(value, ensure_ascii=True)
