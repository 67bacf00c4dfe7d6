"""Build-time conversion of static trees into generated modules."""

from .converter import ConversionSummary, StaticConverter, embed_dir, embed_profile
from .encoder import EncodedContent, encode
from .errors import EmbedBuildError, NameCollision, UnsafeOutputPath
from .manifest import EmbedWriter
from .placement import OutputPlacer, OutputRecord
from .walker import walk_files

__all__ = [
    "ConversionSummary",
    "EmbedBuildError",
    "EmbedWriter",
    "EncodedContent",
    "NameCollision",
    "OutputPlacer",
    "OutputRecord",
    "StaticConverter",
    "UnsafeOutputPath",
    "embed_dir",
    "embed_profile",
    "encode",
    "walk_files",
]
