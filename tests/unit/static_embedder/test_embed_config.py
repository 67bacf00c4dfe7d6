from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from static_embedder.config import CachePolicy, DirMapping, EmbedProfile, EmbedProfileError
from static_embedder.runtime.codec import Compression
from static_embedder.runtime.store import DecodeCache


def _write_yaml(path: Path, payload: dict) -> Path:
    path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return path


def test_profile_defaults(tmp_path: Path) -> None:
    profile = EmbedProfile.load(_write_yaml(tmp_path / "profile.yaml", {"profile_id": "local"}))
    assert profile.profile_id == "local"
    assert profile.policy.compression is Compression.GZIP
    assert profile.policy.min_compression_gain_bytes == 200
    assert profile.policy.record_mtime is False
    assert profile.mappings == ()
    assert profile.serve.path_prefix is None
    assert profile.serve.cors_enabled is False
    assert profile.cache is None


def test_profile_full_load_with_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EMBED_TEST_DEST", str(tmp_path / "out"))
    payload = {
        "profile_id": "site",
        "policy": {"compression": "deflate", "min_compression_gain_bytes": 64, "record_mtime": True},
        "wiring": {
            "mappings": [
                {"source_dir": "static", "dest_dir": "${EMBED_TEST_DEST}"},
                {"source_dir": "docs", "dest_dir": str(tmp_path / "docs_out")},
            ]
        },
        "serve": {
            "path_prefix": "/assets",
            "cors_enabled": True,
            "extra_headers": {"Cache-Control": "public, max-age=60"},
            "cache": {"max_entries": 8, "max_bytes": 4096},
        },
    }
    profile = EmbedProfile.load(_write_yaml(tmp_path / "profile.yaml", payload))
    assert profile.policy.compression is Compression.DEFLATE
    assert profile.policy.min_compression_gain_bytes == 64
    assert profile.policy.record_mtime is True
    assert profile.mappings[0] == DirMapping(source_dir="static", dest_dir=str(tmp_path / "out"))
    assert profile.serve.path_prefix == "/assets"
    assert profile.serve.normalized_prefix() == "/assets"
    assert profile.serve.extra_headers == {"Cache-Control": "public, max-age=60"}
    assert profile.cache == CachePolicy(max_entries=8, max_bytes=4096)
    cache = profile.cache.build()
    assert isinstance(cache, DecodeCache)
    assert cache.max_entries == 8


@pytest.mark.parametrize(
    ("payload", "fragment"),
    [
        ({}, "<root>"),
        ({"profile_id": "x", "policy": {"compression": "brotli"}}, "policy.compression"),
        ({"profile_id": "x", "policy": {"min_compression_gain_bytes": -1}}, "policy.min_compression_gain_bytes"),
        ({"profile_id": "x", "wiring": {"mappings": [{"source_dir": "a"}]}}, "wiring.mappings.0"),
        ({"profile_id": "x", "serve": {"extra_headers": {"X": 1}}}, "serve.extra_headers.X"),
    ],
)
def test_invalid_profiles_name_the_offending_field(payload: dict, fragment: str) -> None:
    with pytest.raises(EmbedProfileError) as excinfo:
        EmbedProfile.from_dict(payload)
    assert fragment in str(excinfo.value)


def test_overlapping_destinations_are_rejected(tmp_path: Path) -> None:
    payload = {
        "profile_id": "x",
        "wiring": {
            "mappings": [
                {"source_dir": "a", "dest_dir": str(tmp_path / "out")},
                {"source_dir": "b", "dest_dir": str(tmp_path / "out" / "nested")},
            ]
        },
    }
    with pytest.raises(EmbedProfileError, match="DEST_DIR_OVERLAP"):
        EmbedProfile.from_dict(payload)


def test_missing_profile_file(tmp_path: Path) -> None:
    with pytest.raises(EmbedProfileError, match="profile not found"):
        EmbedProfile.load(tmp_path / "absent.yaml")
