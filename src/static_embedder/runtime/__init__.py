"""Serve-time support imported by generated registry modules."""

from .codec import Compression
from .errors import AssetNotFound, MalformedPath, ServeError
from .responder import FileServer, ServeOptions, respond
from .store import DecodeCache, EmbeddedFile, Embeds, FileMeta, module_loader, resolve_embeds

__all__ = [
    "AssetNotFound",
    "Compression",
    "DecodeCache",
    "EmbeddedFile",
    "Embeds",
    "FileMeta",
    "FileServer",
    "MalformedPath",
    "ServeError",
    "ServeOptions",
    "module_loader",
    "resolve_embeds",
    "respond",
]
