"""Conditional HTTP responder over an embedded store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
import mimetypes
import re
from typing import TYPE_CHECKING, Mapping
from urllib.parse import quote, unquote_to_bytes, urlsplit

from werkzeug.datastructures import Headers
from werkzeug.http import HTTP_STATUS_CODES, http_date, unquote_etag
from werkzeug.utils import get_content_type
from werkzeug.wrappers import Request, Response

from .errors import AssetNotFound, MalformedPath, ServeError, reason_code

if TYPE_CHECKING:
    from .store import Embeds, FileMeta


logger = logging.getLogger(__name__)

INDEX_DOCUMENT = "index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
CORS_ALLOW_HEADERS = "Origin, X-Requested-With, Content-Type, Accept, Range"
# HTTP dates carry whole seconds; stored mtimes may not.
MODIFIED_SINCE_TOLERANCE = timedelta(seconds=1)

_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class ServeOptions:
    path_prefix: str | None = None
    cors_enabled: bool = False
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def normalized_prefix(self) -> str | None:
        prefix = str(self.path_prefix or "").strip().strip("/")
        if not prefix:
            return None
        return "/" + prefix


def decode_request_path(raw_path: str) -> str:
    """Percent-decode a request path, rejecting what ``decodeURIComponent`` rejects."""
    if _BAD_PERCENT.search(raw_path):
        raise MalformedPath(raw_path)
    try:
        return unquote_to_bytes(raw_path).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedPath(raw_path) from exc


def normalize_url_path(path: str) -> str:
    """Collapse repeated separators and resolve ``.``/``..``; keeps a trailing ``/``."""
    segments: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if segments:
                segments.pop()
            continue
        segments.append(part)
    normalized = "/" + "/".join(segments)
    if path.endswith("/") and normalized != "/":
        normalized += "/"
    return normalized


def content_type_for(path: str) -> str:
    mimetype, _ = mimetypes.guess_type(path, strict=False)
    return get_content_type(mimetype or DEFAULT_CONTENT_TYPE, "utf-8")


def respond(request: Request, store: "Embeds", options: ServeOptions | None = None) -> Response:
    options = options or ServeOptions()
    try:
        decoded = decode_request_path(_raw_path(request))
        normalized = normalize_url_path(decoded)
        if normalized != decoded:
            return _redirect(request, normalized)
        response = _serve_path(request, store, normalized, options)
    except ServeError as exc:
        logger.debug("EMBED serve rejected path=%s reason=%s", request.path, exc.code)
        response = _plain(exc.status)
    except Exception as exc:
        logger.exception("EMBED serve failed path=%s reason=%s", request.path, reason_code(exc))
        response = _plain(500)
    return _finish(response, options)


class FileServer:
    """Binds :func:`respond` to one store, as exported by generated registries."""

    def __init__(self, embeds: "Embeds", options: ServeOptions | None = None) -> None:
        self.embeds = embeds
        self.options = options

    def serve_dir(self, request: Request, options: ServeOptions | None = None) -> Response:
        return respond(request, self.embeds, options or self.options)


def _serve_path(request: Request, store: "Embeds", path: str, options: ServeOptions) -> Response:
    prefix = options.normalized_prefix()
    if prefix:
        if path != prefix and not path.startswith(prefix + "/"):
            raise AssetNotFound(path)
        path = path[len(prefix) :] or "/"
    if path.endswith("/"):
        path += INDEX_DOCUMENT
    key = path[1:]

    meta = store.stat(key)
    if meta is None:
        raise AssetNotFound(key)

    headers = Headers()
    headers["Content-Type"] = content_type_for(key)
    headers["Accept-Ranges"] = "bytes"
    headers["Date"] = http_date(datetime.now(timezone.utc))
    if meta.etag:
        headers["ETag"] = meta.etag
    if meta.mtime is not None:
        headers["Last-Modified"] = http_date(_utc(meta.mtime))

    if _not_modified(request, meta):
        response = Response(b"", status=_status_line(304), headers=headers)
        # Content-Length belongs to 200 responses only.
        response.headers.pop("Content-Length", None)
        return response

    embedded = store.load(key)
    if embedded is None:
        raise AssetNotFound(key)
    body = embedded.bytes()
    headers["Content-Length"] = str(meta.size)
    return Response(body, status=_status_line(200), headers=headers)


def _not_modified(request: Request, meta: "FileMeta") -> bool:
    if request.headers.get("If-None-Match") is not None:
        if not meta.etag:
            return False
        tag, _ = unquote_etag(meta.etag)
        return bool(tag) and request.if_none_match.contains_weak(tag)
    if meta.mtime is None:
        return False
    since = request.if_modified_since
    if since is None:
        return False
    return _utc(meta.mtime) < _utc(since) + MODIFIED_SINCE_TOLERANCE


def _raw_path(request: Request) -> str:
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI")
    if not raw:
        return quote(request.path, safe="/:@!$&'()*+,;=~")
    if raw.startswith("/"):
        path = raw.split("?", 1)[0]
    else:
        # absolute-form request target
        path = urlsplit(raw).path or "/"
    script_root = request.script_root
    if script_root and path.startswith(script_root):
        path = path[len(script_root) :] or "/"
    return path


def _redirect(request: Request, location: str) -> Response:
    target = quote(location, safe="/:@!$&'()*+,;=~")
    query = request.query_string.decode("latin-1")
    if query:
        target = f"{target}?{query}"
    response = _plain(301)
    response.headers["Location"] = target
    return response


def _finish(response: Response, options: ServeOptions) -> Response:
    if options.cors_enabled:
        response.headers.add("Access-Control-Allow-Origin", "*")
        response.headers.add("Access-Control-Allow-Headers", CORS_ALLOW_HEADERS)
    for name, value in options.extra_headers.items():
        response.headers.add(name, value)
    return response


def _plain(status: int) -> Response:
    text = HTTP_STATUS_CODES.get(status, "Unknown")
    return Response(text, status=_status_line(status), mimetype="text/plain")


def _status_line(status: int) -> str:
    return f"{status} {HTTP_STATUS_CODES.get(status, 'Unknown')}"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
