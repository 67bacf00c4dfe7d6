"""Embedded store: registry lookups, lazy decoding, bounded decode cache."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from importlib import import_module
import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Mapping

from .codec import Compression, decode_base64, decompress

if TYPE_CHECKING:
    from werkzeug.wrappers import Request, Response

    from .responder import ServeOptions


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileMeta:
    """Persisted description of one embedded file.

    ``size`` is always the uncompressed length. ``encoded`` holds compressed
    bytes iff ``compression`` is set, raw bytes otherwise.
    """

    size: int
    encoded: str
    etag: str = ""
    compression: Compression | None = None
    atime: datetime | None = None
    mtime: datetime | None = None

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError("FileMeta.size must be non-negative")
        if self.compression is not None and not isinstance(self.compression, Compression):
            object.__setattr__(self, "compression", Compression.parse(self.compression))


FileLoader = Callable[[], FileMeta]


def module_loader(package: str, name: str) -> FileLoader:
    """Return a thunk importing ``name`` relative to ``package`` and yielding its ``META``."""

    def load() -> FileMeta:
        module = import_module(name, package)
        meta = getattr(module, "META", None)
        if not isinstance(meta, FileMeta):
            raise TypeError(f"{module.__name__} does not expose a FileMeta as META")
        return meta

    return load


class EmbeddedFile:
    """Runtime view of one embedded file.

    Base64 is decoded at construction; decompression waits for the first
    :meth:`bytes` call and replaces the stored compressed bytes.
    """

    def __init__(self, meta: FileMeta) -> None:
        self.size = meta.size
        self._bytes = decode_base64(meta.encoded)
        self._compression = meta.compression
        self._text: str | None = None
        self._lock = threading.Lock()

    @property
    def decompressed(self) -> bool:
        return self._compression is None

    def bytes(self) -> bytes:
        with self._lock:
            if self._compression is not None:
                self._bytes = decompress(self._bytes, self._compression)
                self._compression = None
            return self._bytes

    def text(self) -> str:
        if self._text is None:
            self._text = self.bytes().decode("utf-8-sig", errors="replace")
        return self._text


class DecodeCache:
    """LRU of decoded files bounded by entry count and total uncompressed bytes."""

    def __init__(self, *, max_entries: int = 256, max_bytes: int = 32 * 1024 * 1024) -> None:
        if max_entries < 0 or max_bytes < 0:
            raise ValueError("cache bounds must be non-negative")
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self._entries: OrderedDict[str, EmbeddedFile] = OrderedDict()
        self._total_bytes = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    def get(self, key: str) -> EmbeddedFile | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def put(self, key: str, entry: EmbeddedFile) -> None:
        if self.max_entries == 0 or entry.size > self.max_bytes:
            return
        with self._lock:
            previous = self._entries.pop(key, None)
            if previous is not None:
                self._total_bytes -= previous.size
            self._entries[key] = entry
            self._total_bytes += entry.size
            while len(self._entries) > self.max_entries or self._total_bytes > self.max_bytes:
                evicted_key, evicted = self._entries.popitem(last=False)
                self._total_bytes -= evicted.size
                logger.debug("EMBED cache evict path=%s size=%s", evicted_key, evicted.size)


class Embeds:
    """All files embedded by one generated registry module."""

    def __init__(self, embeds: Mapping[str, FileLoader], *, cache: DecodeCache | None = None) -> None:
        self._embeds = dict(embeds)
        self.cache = cache

    def list(self) -> set[str]:
        return set(self._embeds)

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._embeds

    def __len__(self) -> int:
        return len(self._embeds)

    def stat(self, file_path: str) -> FileMeta | None:
        """Resolve metadata without decoding the payload."""
        loader = self._embeds.get(file_path)
        if loader is None:
            return None
        return loader()

    def load(self, file_path: str) -> EmbeddedFile | None:
        """Return a decoded file, or ``None`` for unknown paths."""
        if self.cache is not None:
            cached = self.cache.get(file_path)
            if cached is not None:
                return cached
        meta = self.stat(file_path)
        if meta is None:
            return None
        embedded = EmbeddedFile(meta)
        if self.cache is not None:
            self.cache.put(file_path, embedded)
        return embedded

    get = load

    def serve(self, request: "Request", options: "ServeOptions | None" = None) -> "Response":
        from .responder import respond

        return respond(request, self, options)

    def with_cache(self, cache: DecodeCache | None) -> "Embeds":
        return Embeds(self._embeds, cache=cache)


def resolve_embeds(target: Any) -> Embeds:
    """Accept an ``Embeds`` or the dotted name of a generated registry module."""
    if isinstance(target, Embeds):
        return target
    module = import_module(str(target))
    embeds = getattr(module, "embeds", None)
    if not isinstance(embeds, Embeds):
        raise TypeError(f"{target} is not a generated registry module")
    return embeds
