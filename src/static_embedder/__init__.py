"""Embed static asset trees into generated Python modules and serve them over HTTP."""

__all__: list[str] = []
