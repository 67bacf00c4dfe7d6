"""Clean-then-convert driver for one source tree."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import os
from pathlib import Path

from static_embedder.config import DirMapping, EmbedPolicy, EmbedProfile

from .errors import EmbedBuildError
from .manifest import EmbedWriter
from .placement import OutputRecord, is_strict_descendant
from .walker import walk_files


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionSummary:
    source_dir: str
    dest_dir: str
    files: int
    compressed_files: int
    raw_bytes: int
    stored_bytes: int
    registry_path: str


class StaticConverter:
    """Converts static files from one directory into a generated package."""

    def __init__(self, source_dir: str | Path, dest_dir: str | Path, *, policy: EmbedPolicy | None = None) -> None:
        self.source_dir = os.path.abspath(str(source_dir))
        self.dest_dir = os.path.normpath(str(dest_dir))
        self.policy = policy or EmbedPolicy()
        self._writer = EmbedWriter(
            self.dest_dir,
            compression=self.policy.compression,
            min_gain_bytes=self.policy.min_compression_gain_bytes,
        )

    def clean(self) -> None:
        self._check_roots()
        self._writer.clean()

    def convert(self) -> ConversionSummary:
        """Regenerate the destination; the first build error aborts the run."""
        self._check_roots()
        self._writer.clean()
        # Every file is placed before anything is written.
        records = self._plan()
        Path(self.dest_dir).mkdir(parents=True, exist_ok=True)

        compressed = 0
        raw_bytes = 0
        stored_bytes = 0
        for record in records:
            source = Path(self.source_dir, *record.original_path.split("/"))
            mtime = None
            if self.policy.record_mtime:
                mtime = datetime.fromtimestamp(int(source.stat().st_mtime), tz=timezone.utc)
            content = self._writer.write_file(record, source.read_bytes(), mtime=mtime)
            raw_bytes += content.size
            stored_bytes += content.stored_size
            if content.compression is not None:
                compressed += 1

        registry = self._writer.write_manifest()
        summary = ConversionSummary(
            source_dir=self.source_dir,
            dest_dir=self.dest_dir,
            files=len(records),
            compressed_files=compressed,
            raw_bytes=raw_bytes,
            stored_bytes=stored_bytes,
            registry_path=str(registry),
        )
        logger.info(
            "EMBED converted source=%s dest=%s files=%s compressed=%s raw_bytes=%s stored_bytes=%s",
            summary.source_dir,
            summary.dest_dir,
            summary.files,
            summary.compressed_files,
            summary.raw_bytes,
            summary.stored_bytes,
        )
        return summary

    def _plan(self) -> list[OutputRecord]:
        records: list[OutputRecord] = []
        for relative in walk_files(self.source_dir):
            placed = self._writer.place(relative)
            if isinstance(placed, EmbedBuildError):
                logger.error("EMBED placement failed source=%s reason=%s", relative, placed.code)
                raise placed
            records.append(placed)
        return records

    def _check_roots(self) -> None:
        if not Path(self.source_dir).is_dir():
            raise EmbedBuildError("SOURCE_DIR_NOT_FOUND", self.source_dir)
        # Cleaning the destination must never delete the source tree.
        if self.source_dir == self.dest_dir or is_strict_descendant(self.dest_dir, self.source_dir):
            raise EmbedBuildError("DEST_CONTAINS_SOURCE", f"{self.dest_dir} contains {self.source_dir}")


def embed_dir(
    src: str | Path,
    dst: str | Path,
    *,
    policy: EmbedPolicy | None = None,
    base_dir: str | Path | None = None,
) -> ConversionSummary:
    """Embed ``src`` into ``dst``, both resolved against the working directory."""
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    source_dir = os.path.abspath(os.path.join(base, src))
    dest_dir = os.path.abspath(os.path.join(base, dst))
    logger.info("EMBED convert start source=%s dest=%s", source_dir, dest_dir)
    converter = StaticConverter(source_dir, dest_dir, policy=policy)
    converter.clean()
    return converter.convert()


def embed_profile(profile: EmbedProfile, *, base_dir: str | Path | None = None) -> list[ConversionSummary]:
    """Convert every mapping of a profile, stopping at the first failure."""
    if not profile.mappings:
        raise EmbedBuildError("MAPPINGS_MISSING", profile.profile_id)
    return [_embed_mapping(mapping, profile.policy, base_dir) for mapping in profile.mappings]


def _embed_mapping(mapping: DirMapping, policy: EmbedPolicy, base_dir: str | Path | None) -> ConversionSummary:
    return embed_dir(mapping.source_dir, mapping.dest_dir, policy=policy, base_dir=base_dir)
