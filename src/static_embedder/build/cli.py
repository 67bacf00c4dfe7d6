"""Embedder CLI: convert static directories into generated modules."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from static_embedder.config import EmbedProfile, EmbedProfileError
from static_embedder.logging_utils import configure_logging, env_log_level

from .converter import embed_dir, embed_profile
from .errors import EmbedBuildError
from .manifest import generator_version


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="static-embed",
        description="Embeds static files into generated Python modules.",
    )
    parser.add_argument("src", nargs="?", help="Directory containing your static files")
    parser.add_argument("dest", nargs="?", help="Package directory to write the embedded files into")
    parser.add_argument("--profile", help="Path to embed profile YAML (converts every mapping)")
    parser.add_argument("--verbose", action="store_true", help="Log every encoded file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {generator_version()}")
    args = parser.parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else env_log_level(logging.WARNING))

    if args.profile and (args.src or args.dest):
        parser.error("give either <src> <dest> or --profile, not both")
    if not args.profile and not (args.src and args.dest):
        parser.error("<src> and <dest> are required without --profile")

    print("Converting files...")
    try:
        if args.profile:
            profile = EmbedProfile.load(Path(args.profile))
            summaries = embed_profile(profile)
        else:
            summaries = [embed_dir(args.src, args.dest)]
    except EmbedProfileError as exc:
        raise SystemExit(f"ERROR EMBED_PROFILE_INVALID: {exc}") from exc
    except EmbedBuildError as exc:
        raise SystemExit(f"ERROR {exc.code}: {exc.detail or exc}") from exc
    for summary in summaries:
        print(
            json.dumps(
                {"dest_dir": summary.dest_dir, "files": summary.files, "compressed": summary.compressed_files},
                sort_keys=True,
            )
        )
    print("Done")


if __name__ == "__main__":
    main()
