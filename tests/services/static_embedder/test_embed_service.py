from __future__ import annotations

import importlib
from pathlib import Path
import sys
import uuid

import pytest

from static_embedder.build.converter import embed_dir
from static_embedder.runtime.responder import ServeOptions
from static_embedder.runtime.service import HEALTH_PATH, create_app
from static_embedder.runtime.store import DecodeCache


PAGE = b"<html><body>" + b"<p>cached</p>" * 80 + b"</body></html>"


@pytest.fixture
def registry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    root = tmp_path / "pkgroot"
    root.mkdir()
    source = tmp_path / "site"
    (source / "app").mkdir(parents=True)
    (source / "index.html").write_bytes(PAGE)
    (source / "app" / "main.js").write_text("console.log('hi');\n", encoding="utf-8")

    name = f"served_assets_{uuid.uuid4().hex[:12]}"
    embed_dir(source, root / name)
    monkeypatch.syspath_prepend(str(root))
    importlib.invalidate_caches()
    yield name
    for module_name in list(sys.modules):
        if module_name == name or module_name.startswith(name + "."):
            del sys.modules[module_name]


def test_service_serves_index_and_files(registry: str) -> None:
    client = create_app(registry).test_client()

    response = client.get("/")
    assert response.status_code == 200
    assert response.data == PAGE
    assert response.headers["Content-Type"] == "text/html; charset=utf-8"
    assert response.headers["ETag"]

    script = client.get("/app/main.js")
    assert script.status_code == 200
    assert script.data == b"console.log('hi');\n"


def test_service_not_found_and_redirect(registry: str) -> None:
    client = create_app(registry).test_client()

    missing = client.get("/nope.css")
    assert missing.status_code == 404
    assert missing.data == b"Not Found"

    redirect = client.get("/app//main.js")
    assert redirect.status_code == 301
    assert redirect.headers["Location"].endswith("/app/main.js")

    assert client.get("/app/").status_code == 404


def test_service_answers_conditional_requests(registry: str) -> None:
    client = create_app(registry).test_client()
    etag = client.get("/").headers["ETag"]

    cached = client.get("/", headers={"If-None-Match": etag})
    assert cached.status_code == 304
    assert cached.data == b""

    stale = client.get("/", headers={"If-None-Match": '"other"'})
    assert stale.status_code == 200


def test_service_applies_prefix_and_cors(registry: str) -> None:
    options = ServeOptions(path_prefix="static", cors_enabled=True, extra_headers={"Cache-Control": "no-cache"})
    client = create_app(registry, options).test_client()

    response = client.get("/static/app/main.js")
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Cache-Control"] == "no-cache"
    assert client.get("/app/main.js").status_code == 404


def test_health_reports_files_and_cache(registry: str) -> None:
    cache = DecodeCache(max_entries=4, max_bytes=1024 * 1024)
    client = create_app(registry, cache=cache).test_client()
    client.get("/")

    payload = client.get(HEALTH_PATH).get_json()
    assert payload["state"] == "GREEN"
    assert payload["files"] == 2
    assert payload["cache"]["entries"] == 1
    assert payload["cache"]["bytes"] == len(PAGE)


def test_service_ignores_unsupported_methods(registry: str) -> None:
    client = create_app(registry).test_client()
    assert client.post("/").status_code in {404, 405}
