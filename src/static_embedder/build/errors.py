"""Build-time error taxonomy."""

from __future__ import annotations


class EmbedBuildError(RuntimeError):
    """Fatal conversion failure; aborts the whole run."""

    def __init__(self, code: str, detail: str | None = None) -> None:
        self.code = code
        self.detail = detail
        message = f"{code}:{detail}" if detail else code
        super().__init__(message)


class UnsafeOutputPath(EmbedBuildError):
    """A candidate output path escapes the destination root."""

    def __init__(self, candidate: str, dest_dir: str) -> None:
        self.candidate = candidate
        self.dest_dir = dest_dir
        super().__init__("UNSAFE_OUTPUT_PATH", f"{candidate} must be within {dest_dir}")


class NameCollision(EmbedBuildError):
    """Two inputs normalize to the same generated location."""

    def __init__(self, on_disk: str, first_original: str, second_original: str) -> None:
        self.on_disk = on_disk
        self.first_original = first_original
        self.second_original = second_original
        detail = "\n".join(
            [
                f'Two files normalize to the same on-disk location: "{on_disk}":',
                f'1) "{first_original}"',
                f'2) "{second_original}"',
            ]
        )
        super().__init__("NAME_COLLISION", detail)
