from __future__ import annotations

from typing import Optional


class PixelSproutError(Exception):
    """Base exception for the Pixel Sprout project."""


class GenerationFailed(PixelSproutError):
    """Raised when no connected layout could be produced for a level."""

    def __init__(self, level_id: int, attempts: int) -> None:
        super().__init__(f"Failed to generate a connected layout for level {level_id} after {attempts} attempts")
        self.level_id = level_id
        self.attempts = attempts


class ConfigError(PixelSproutError):
    """Raised for an invalid level table or settings file."""


class NarrativeError(PixelSproutError):
    """Raised by the narrative HTTP client on transport or API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
