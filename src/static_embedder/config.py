"""Embed profile loader (YAML, validated against a JSON schema)."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import re
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from static_embedder.runtime.codec import Compression
from static_embedder.runtime.responder import ServeOptions
from static_embedder.runtime.store import DecodeCache


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

_PROFILE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["profile_id"],
    "properties": {
        "profile_id": {"type": "string", "minLength": 1},
        "policy": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "compression": {"enum": [item.value for item in Compression]},
                "min_compression_gain_bytes": {"type": "integer", "minimum": 0},
                "record_mtime": {"type": "boolean"},
            },
        },
        "wiring": {
            "type": "object",
            "properties": {
                "mappings": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["source_dir", "dest_dir"],
                        "additionalProperties": False,
                        "properties": {
                            "source_dir": {"type": "string", "minLength": 1},
                            "dest_dir": {"type": "string", "minLength": 1},
                        },
                    },
                }
            },
        },
        "serve": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "path_prefix": {"type": ["string", "null"]},
                "cors_enabled": {"type": "boolean"},
                "extra_headers": {"type": "object", "additionalProperties": {"type": "string"}},
                "cache": {
                    "type": ["object", "null"],
                    "additionalProperties": False,
                    "properties": {
                        "max_entries": {"type": "integer", "minimum": 0},
                        "max_bytes": {"type": "integer", "minimum": 0},
                    },
                },
            },
        },
    },
}


class EmbedProfileError(ValueError):
    """Raised when an embed profile is missing, malformed or inconsistent."""


def _resolve_env(value: str | None) -> str | None:
    if not value or not isinstance(value, str):
        return value
    match = _ENV_PATTERN.fullmatch(value.strip())
    if match:
        return os.getenv(match.group(1)) or ""
    return value


@dataclass(frozen=True)
class EmbedPolicy:
    compression: Compression = Compression.GZIP
    min_compression_gain_bytes: int = 200
    record_mtime: bool = False


@dataclass(frozen=True)
class DirMapping:
    """One source tree and the generated package it is embedded into."""

    source_dir: str
    dest_dir: str


@dataclass(frozen=True)
class CachePolicy:
    max_entries: int = 256
    max_bytes: int = 32 * 1024 * 1024

    def build(self) -> DecodeCache:
        return DecodeCache(max_entries=self.max_entries, max_bytes=self.max_bytes)


@dataclass(frozen=True)
class EmbedProfile:
    profile_id: str
    policy: EmbedPolicy = field(default_factory=EmbedPolicy)
    mappings: tuple[DirMapping, ...] = ()
    serve: ServeOptions = field(default_factory=ServeOptions)
    cache: CachePolicy | None = None

    @classmethod
    def load(cls, path: Path) -> "EmbedProfile":
        if not path.exists():
            raise EmbedProfileError(f"profile not found: {path}")
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise EmbedProfileError(f"profile is not a mapping: {path}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmbedProfile":
        _validate(data)
        policy = data.get("policy") or {}
        wiring = data.get("wiring") or {}
        serve = data.get("serve") or {}

        mappings = tuple(
            DirMapping(
                source_dir=_resolve_env(item["source_dir"]) or "",
                dest_dir=_resolve_env(item["dest_dir"]) or "",
            )
            for item in wiring.get("mappings") or []
        )
        _check_destinations(mappings)

        cache = None
        if serve.get("cache") is not None:
            cache_cfg = serve["cache"]
            cache = CachePolicy(
                max_entries=int(cache_cfg.get("max_entries", 256)),
                max_bytes=int(cache_cfg.get("max_bytes", 32 * 1024 * 1024)),
            )

        return cls(
            profile_id=data["profile_id"],
            policy=EmbedPolicy(
                compression=Compression(policy.get("compression", Compression.GZIP.value)),
                min_compression_gain_bytes=int(policy.get("min_compression_gain_bytes", 200)),
                record_mtime=bool(policy.get("record_mtime", False)),
            ),
            mappings=mappings,
            serve=ServeOptions(
                path_prefix=_resolve_env(serve.get("path_prefix")) or None,
                cors_enabled=bool(serve.get("cors_enabled", False)),
                extra_headers=dict(serve.get("extra_headers") or {}),
            ),
            cache=cache,
        )


def _validate(data: dict[str, Any]) -> None:
    validator = Draft202012Validator(_PROFILE_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda item: [str(part) for part in item.path])
    if not errors:
        return
    first = errors[0]
    location = ".".join(str(item) for item in first.path) or "<root>"
    raise EmbedProfileError(f"embed_profile:{location}:{first.message}")


def _check_destinations(mappings: tuple[DirMapping, ...]) -> None:
    resolved = [(Path(item.dest_dir).resolve(), item.dest_dir) for item in mappings]
    for index, (left, left_raw) in enumerate(resolved):
        if not left_raw:
            raise EmbedProfileError("DEST_DIR_EMPTY")
        for right, right_raw in resolved[index + 1 :]:
            if left == right or left in right.parents or right in left.parents:
                raise EmbedProfileError(f"DEST_DIR_OVERLAP:{left_raw}:{right_raw}")
