"""Errors surfaced across the engine boundary."""

from typing import Any


class MarkdownLDError(Exception):
    """Base class for every error raised by markdown_ld."""

    tag = "error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(f"{self.tag}: {detail}" if detail else self.tag)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.tag, "detail": self.detail}


class InvalidEncoding(MarkdownLDError):
    """Raised when the input is not valid UTF-8 text."""

    tag = "invalid_encoding"


class ProcessingError(MarkdownLDError):
    """Raised on an internal invariant violation or a misbehaving index."""

    tag = "processing_error"


class ConfigError(MarkdownLDError):
    """Raised when mdld.toml holds values the engine cannot use."""

    tag = "config_error"
