"""
Error types shared by the back-office components.

The HTTP layer maps these onto status codes; the core only raises them.
"""

from __future__ import annotations


class BackofficeError(Exception):
    """Base back-office error."""

    pass


class ValidationError(BackofficeError):
    """Required input is missing or malformed."""

    def __init__(self, fields: list[str], message: str | None = None) -> None:
        self.fields = list(fields)
        super().__init__(message or f"Missing or invalid fields: {', '.join(self.fields)}")


class UnsupportedFormatError(BackofficeError):
    """Requested report format is not known."""

    def __init__(self, fmt: str) -> None:
        self.fmt = fmt
        super().__init__(f"Unsupported report format: {fmt!r}")


class NotFoundError(BackofficeError):
    """Referenced entity does not exist (or lives in another license)."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")
