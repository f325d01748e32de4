"""
Error types raised by the inkblog content pipeline.

Every failure surfaced by loading, rendering or packing is an ``InkblogError``
so callers can abort a pack run or fail a single served request with one
``except`` clause.
"""

from typing import Optional


class InkblogError(Exception):
    """Base class for all inkblog errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ContentIOError(InkblogError):
    """An I/O failure (missing file, permission, directory walk)."""

    @classmethod
    def from_os_error(cls, error: OSError) -> 'ContentIOError':
        if error.filename:
            return cls(f"{error.strerror or error}: {error.filename}")
        return cls(str(error))


class NoFrontMatterError(InkblogError):
    """A document has no front matter block."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"no front matter in {self.path}")


class FrontMatterError(InkblogError):
    """The front matter is malformed or a field has an invalid value."""

    def __init__(self, path, message: str):
        self.path = str(path)
        self.detail = message
        super().__init__(f"invalid front matter in {self.path}: {message}")


class NoHomeTemplateError(InkblogError):
    def __init__(self):
        super().__init__("no main template file found")


class NoPostTemplateError(InkblogError):
    def __init__(self):
        super().__init__("no posts template file found")


class TemplateLoadError(InkblogError):
    """A template exists but could not be compiled."""


class TemplateRenderError(InkblogError):
    """A template failed while rendering a model."""


class StaticRequestError(InkblogError):
    """A static file request that must be answered with an error status."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"static request failed with status {status}")
