from __future__ import annotations

from typing import Optional


class ParseError(ValueError):
    """Malformed bbox / point / radius text. Always the client's fault."""


class IngestionError(Exception):
    """
    A source could not be read or turned into point features.

    Attributes:
        source: path (as str) of the offending file, if known.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        msg = super().__str__()
        if self.source:
            return f"{self.source}: {msg}"
        return msg


class GeometryError(IngestionError):
    """A feature without a Point geometry reached FeatureStore.build()."""

    def __init__(self, message: str, position: int, source: Optional[str] = None):
        super().__init__(message, source=source)
        self.position = position


class DatasetUnavailableError(RuntimeError):
    """No feature store has been published yet."""
