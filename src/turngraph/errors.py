from __future__ import annotations

from typing import Any


class TurngraphError(Exception):
    """Base class for turngraph errors."""


class ParseError(TurngraphError):
    """A raw event or provider payload is structurally invalid.

    Unrecognized payload shapes are not errors (parsers return ``None``); this is
    raised only when required fields are missing or have the wrong type.
    """

    def __init__(self, message: str, *, provider: str | None = None, event_id: str | None = None):
        self.provider = provider
        self.event_id = event_id
        super().__init__(message)


class GraphOperationError(TurngraphError):
    def __init__(
        self, message: str, *, query: str | None = None, params: dict[str, Any] | None = None
    ) -> None:
        self.query = query
        self.params = params
        super().__init__(message)


class StorageError(TurngraphError):
    def __init__(self, message: str, *, uri: str | None = None) -> None:
        self.uri = uri
        super().__init__(message)


class ValidationError(TurngraphError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)
