# =============================================
# File: taskpilot/utils/errors.py
# Purpose: Error types shared by the ranking, gateway and generation layers
# =============================================
from __future__ import annotations

from typing import Optional


class ConfigError(Exception):
    """Missing or malformed credential/configuration. Fatal, never retried."""


class RemoteError(Exception):
    """Non-success response, error payload or transport failure from a remote call."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"({self.status}) {self.message}"


class DimensionMismatch(ValueError):
    """Two vectors of different length were compared."""


class ParseError(Exception):
    """Model output did not contain the expected JSON. Keeps the raw text for diagnosis."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class CatalogUnavailable(Exception):
    """The candidate store could not load any catalog source."""
