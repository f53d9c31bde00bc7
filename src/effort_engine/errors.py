"""
Exception types for the effort engine.

- ValidationError: caller-supplied value outside its contract (HTTP 400)
- StoreError: the persistence collaborator failed (HTTP 500)
- TaskNotFoundError: a referenced task row does not exist
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class EffortEngineError(Exception):
    """Base exception for all effort engine errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(EffortEngineError):
    pass


class StoreError(EffortEngineError):
    pass


class TaskNotFoundError(StoreError):
    pass
