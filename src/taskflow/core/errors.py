# src/taskflow/core/errors.py

from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base class for everything a store may raise."""


class TransportError(StoreError):
    """Backend unreachable, timed out, or rejected the request."""


class FetchError(TransportError):
    """Reading a collection failed."""


class ValidationError(StoreError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(StoreError):
    def __init__(self, entity: str, record_id: Any) -> None:
        super().__init__(f"{entity} not found: {record_id}")
        self.entity = entity
        self.record_id = record_id
