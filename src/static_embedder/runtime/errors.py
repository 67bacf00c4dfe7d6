"""Serve-time error taxonomy."""

from __future__ import annotations


class ServeError(RuntimeError):
    """Request failure surfaced as a stable reason code and HTTP status."""

    status = 500

    def __init__(self, code: str, detail: str | None = None) -> None:
        self.code = code
        self.detail = detail
        message = f"{code}:{detail}" if detail else code
        super().__init__(message)


class MalformedPath(ServeError):
    status = 400

    def __init__(self, detail: str | None = None) -> None:
        super().__init__("MALFORMED_PATH", detail)


class AssetNotFound(ServeError):
    status = 404

    def __init__(self, detail: str | None = None) -> None:
        super().__init__("NOT_FOUND", detail)


def reason_code(exc: BaseException) -> str:
    if isinstance(exc, ServeError):
        return exc.code
    text = str(exc or "").strip()
    if text.isupper():
        return text
    if ":" in text:
        head = text.split(":", 1)[0].strip()
        if head.isupper():
            return head
    return "INTERNAL_ERROR"
