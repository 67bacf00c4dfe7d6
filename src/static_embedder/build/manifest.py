"""Writes generated file modules plus the registry module for one destination."""

from __future__ import annotations

from datetime import datetime
from importlib import metadata
import json
import logging
from pathlib import Path
import shutil

from static_embedder.runtime.codec import Compression

from .encoder import DEFAULT_COMPRESSION, DEFAULT_MIN_GAIN_BYTES, EncodedContent, encode, render_file_module
from .errors import EmbedBuildError
from .placement import OutputPlacer, OutputRecord


logger = logging.getLogger(__name__)

DISTRIBUTION = "static-embedder"
MARKER_FILE = ".gitattributes"
MARKER_CONTENT = "* linguist-generated=true\n"


def generator_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0+unknown"


def generated_header() -> str:
    return f"Generated by {DISTRIBUTION} {generator_version()}. Do not edit."


class EmbedWriter:
    """Writes embedded files under ``dest_dir`` and the registry that finds them."""

    def __init__(
        self,
        dest_dir: str | Path,
        *,
        compression: Compression = DEFAULT_COMPRESSION,
        min_gain_bytes: int = DEFAULT_MIN_GAIN_BYTES,
    ) -> None:
        self.placer = OutputPlacer(dest_dir)
        self.dest_dir = self.placer.dest_dir
        self.compression = compression
        self.min_gain_bytes = min_gain_bytes
        self.header = generated_header()

    def place(self, original_path: str) -> OutputRecord | EmbedBuildError:
        return self.placer.place(original_path)

    def write_file(self, record: OutputRecord, data: bytes, *, mtime: datetime | None = None) -> EncodedContent:
        content = encode(data, compression=self.compression, min_gain_bytes=self.min_gain_bytes)
        out_path = Path(record.on_disk_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(render_file_module(content, header=self.header, mtime=mtime), encoding="utf-8")
        logger.debug(
            "EMBED wrote path=%s size=%s stored=%s compression=%s",
            record.relative_path,
            content.size,
            content.stored_size,
            content.compression.value if content.compression else "none",
        )
        return content

    def write_manifest(self) -> Path:
        """Write the registry module and the generated-tree marker.

        Call after every file is written; entries are sorted by relative path.
        """
        records = self.placer.records()
        body = [
            f"# {self.header}",
            '"""Embedded static assets."""',
            "",
            "from static_embedder.runtime import Embeds, FileServer, module_loader",
            "",
        ]
        if records:
            body.append("embeds = Embeds(")
            body.append("    {")
            for record in records:
                key = json.dumps(record.relative_path, ensure_ascii=True)
                target = json.dumps(record.import_path, ensure_ascii=True)
                body.append(f"        {key}: module_loader(__name__, {target}),")
            body.append("    }")
            body.append(")")
        else:
            body.append("embeds = Embeds({})")
        body.extend(
            [
                "",
                "server = FileServer(embeds)",
                "serve_dir = server.serve_dir",
                "",
                '__all__ = ["embeds", "serve_dir", "server"]',
            ]
        )
        registry = Path(self.placer.registry_path)
        registry.parent.mkdir(parents=True, exist_ok=True)
        registry.write_text("\n".join(body) + "\n", encoding="utf-8")
        Path(self.dest_dir, MARKER_FILE).write_text(MARKER_CONTENT, encoding="utf-8")
        logger.info("EMBED registry written path=%s files=%s", registry, len(records))
        return registry

    def clean(self) -> None:
        """Forget placements and delete the destination tree for a fresh run."""
        self.placer.reset()
        dest = Path(self.dest_dir)
        if not dest.exists() or not any(dest.iterdir()):
            return
        logger.info("EMBED clean dest=%s", dest)
        shutil.rmtree(dest)
