"""Error hierarchy for the sentiment engine.

Only contract violations are raised to callers. Batch item failures are
captured as ``BatchPartialFailure`` records and never raised.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class SentimentEngineError(Exception):
    """Base exception for all sentiment engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class InvalidInputError(SentimentEngineError, ValueError):
    """Malformed input such as ``None`` or a non-string text."""


class ModelNotTrainedError(SentimentEngineError):
    """The classifier has no vocabulary and no fallback is permitted."""


class TrainingDataError(ModelNotTrainedError):
    """Empty or all-invalid training example list."""

    def __init__(
        self,
        message: str,
        received: int = 0,
        rejected: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.received = received
        self.rejected = rejected

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"received": self.received, "rejected": self.rejected})
        return data


class BatchPartialFailure(SentimentEngineError):
    """Per-item failure captured during batch analysis."""

    def __init__(
        self,
        message: str,
        index: int,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.index = index
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "index": self.index,
                "cause": type(self.cause).__name__ if self.cause else None,
            }
        )
        return data


__all__ = [
    "SentimentEngineError",
    "InvalidInputError",
    "ModelNotTrainedError",
    "TrainingDataError",
    "BatchPartialFailure",
]
