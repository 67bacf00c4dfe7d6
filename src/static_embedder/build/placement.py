"""Output placement: containment, name normalization, collision detection."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import posixpath
import re

from .errors import EmbedBuildError, NameCollision, UnsafeOutputPath


REGISTRY_MODULE = "__init__.py"
GENERATED_SUFFIX = ".py"
# Names bound in the registry module; a top-level sub-package would overwrite them on import.
REGISTRY_NAMES = frozenset({"embeds", "server", "serve_dir", "Embeds", "FileServer", "module_loader"})
_MODULE_ATTRIBUTES = frozenset(
    {
        "__all__", "__builtins__", "__cached__", "__class__", "__dict__", "__doc__", "__file__",
        "__init__", "__loader__", "__name__", "__package__", "__path__", "__pycache__", "__spec__",
    }
)
_SPACES = re.compile(r"[ ]+")


@dataclass(frozen=True)
class OutputRecord:
    original_path: str
    # POSIX path within the destination, e.g. ``css/site.css``; the registry key.
    relative_path: str
    on_disk_path: str
    # Dotted module name relative to the registry package, e.g. ``.css._site_css``.
    import_path: str


def normalize_name(relative_path: str) -> str:
    """Map a POSIX relative path to the generated module path.

    Spaces collapse to ``_``; dots become ``_`` because the import system reads
    them as package separators; the base name gains a ``_`` prefix and ``.py``.
    """
    normalized = _SPACES.sub("_", relative_path)
    normalized = normalized.replace(".", "_")
    directory, base = posixpath.split(normalized)
    return posixpath.join(directory, f"_{base}{GENERATED_SUFFIX}")


def is_strict_descendant(parent: str, child: str) -> bool:
    parent = os.path.normpath(parent)
    child = os.path.normpath(child)
    if not os.path.isabs(parent) or not os.path.isabs(child):
        raise ValueError("parent and child paths must be absolute")
    if parent == child:
        return False
    try:
        return os.path.commonpath([parent, child]) == parent
    except ValueError:
        # different drives
        return False


class OutputPlacer:
    """Assigns every input file a unique, contained generated-module location."""

    def __init__(self, dest_dir: str | Path) -> None:
        dest = str(dest_dir)
        if not os.path.isabs(dest):
            raise ValueError(f"dest_dir must be absolute: {dest}")
        self.dest_dir = os.path.normpath(dest)
        self.registry_path = os.path.join(self.dest_dir, REGISTRY_MODULE)
        self._files: dict[str, OutputRecord] = {}
        self._modules: dict[str, str] = {}
        self._packages: dict[str, str] = {}

    def reset(self) -> None:
        self._files.clear()
        self._modules.clear()
        self._packages.clear()

    def __len__(self) -> int:
        return len(self._files)

    def records(self) -> list[OutputRecord]:
        """Placed records sorted by relative path."""
        return sorted(self._files.values(), key=lambda record: record.relative_path)

    def place(self, original_path: str) -> OutputRecord | EmbedBuildError:
        """Place one input file; returns the record or the error that blocks it."""
        candidate = os.path.abspath(os.path.join(self.dest_dir, original_path))
        if not is_strict_descendant(self.dest_dir, candidate):
            return UnsafeOutputPath(candidate, self.dest_dir)
        relative = Path(os.path.relpath(candidate, self.dest_dir)).as_posix()

        normalized = normalize_name(relative)
        record = OutputRecord(
            original_path=original_path,
            relative_path=relative,
            on_disk_path=os.path.join(self.dest_dir, *normalized.split("/")),
            import_path="." + normalized[: -len(GENERATED_SUFFIX)].replace("/", "."),
        )

        collision = self._collision(record)
        if collision is not None:
            return collision
        self._files[record.on_disk_path] = record
        self._modules[record.import_path] = original_path
        for package in _parent_packages(record.import_path):
            self._packages.setdefault(package, original_path)
        return record

    def _collision(self, record: OutputRecord) -> NameCollision | None:
        if record.on_disk_path == self.registry_path or _shadows_registry(record.import_path):
            return NameCollision(record.on_disk_path, "<registry module>", record.original_path)
        existing = self._files.get(record.on_disk_path)
        if existing is not None:
            return NameCollision(record.on_disk_path, existing.original_path, record.original_path)
        # A module and a sub-package sharing one dotted name cannot both import.
        if record.import_path in self._packages:
            return NameCollision(record.on_disk_path, self._packages[record.import_path], record.original_path)
        for package in _parent_packages(record.import_path):
            if package in self._modules:
                return NameCollision(record.on_disk_path, self._modules[package], record.original_path)
        return None


def _shadows_registry(import_path: str) -> bool:
    top = import_path.lstrip(".").split(".", 1)[0]
    return top in REGISTRY_NAMES or top in _MODULE_ATTRIBUTES


def _parent_packages(import_path: str) -> list[str]:
    parts = import_path.lstrip(".").split(".")
    return ["." + ".".join(parts[:index]) for index in range(1, len(parts))]
