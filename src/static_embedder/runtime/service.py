"""Flask service serving a generated registry."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request

from static_embedder.logging_utils import configure_logging, env_log_level

from .responder import ServeOptions, respond
from .store import DecodeCache, Embeds, resolve_embeds


logger = logging.getLogger(__name__)

HEALTH_PATH = "/_embed/health"
SERVED_METHODS = {"GET", "HEAD"}


def create_app(registry: Embeds | str, options: ServeOptions | None = None, cache: DecodeCache | None = None) -> Flask:
    embeds = resolve_embeds(registry)
    if cache is not None:
        embeds = embeds.with_cache(cache)
    serve_options = options or ServeOptions()

    app = Flask(__name__)
    # The responder normalizes paths itself and answers with 301.
    app.url_map.merge_slashes = False

    @app.before_request
    def serve_embedded() -> Any:
        if request.url_rule is not None or request.method not in SERVED_METHODS:
            return None
        return respond(request, embeds, serve_options)

    @app.get(HEALTH_PATH)
    def embed_health() -> Any:
        payload: dict[str, Any] = {"state": "GREEN", "files": len(embeds)}
        if embeds.cache is not None:
            payload["cache"] = {"entries": len(embeds.cache), "bytes": embeds.cache.total_bytes}
        return jsonify(payload)

    logger.info("EMBED service ready files=%s prefix=%s", len(embeds), serve_options.path_prefix)
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve a generated static-embedder registry")
    parser.add_argument("--registry", required=True, help="Dotted module name of the generated package")
    parser.add_argument("--profile", help="Path to embed profile YAML (serve + cache settings)")
    parser.add_argument("--path-prefix", help="Leading path segment stripped before lookup")
    parser.add_argument("--cors", action="store_true", help="Add permissive CORS headers")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    configure_logging(level=env_log_level(logging.INFO))
    options = ServeOptions()
    cache = None
    if args.profile:
        from static_embedder.config import EmbedProfile

        profile = EmbedProfile.load(Path(args.profile))
        options = profile.serve
        cache = profile.cache.build() if profile.cache else None
    if args.path_prefix is not None or args.cors:
        options = ServeOptions(
            path_prefix=args.path_prefix if args.path_prefix is not None else options.path_prefix,
            cors_enabled=args.cors or options.cors_enabled,
            extra_headers=options.extra_headers,
        )

    app = create_app(args.registry, options, cache)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
