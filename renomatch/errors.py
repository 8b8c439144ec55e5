"""
Error taxonomy for the matching service.

Empty eligible sets are NOT errors; they produce a well-formed empty
result. Verification failures never reach this module; they degrade to
"unverified" inside renomatch.verification.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(Enum):
    VALIDATION = "validation"
    CANDIDATE_DATA = "candidate_data"
    PROVIDER = "provider"
    INTERNAL = "internal"


class RenoMatchError(Exception):
    """Base exception; carries the HTTP status the API layer should answer with."""

    def __init__(
            self,
            message: str,
            error_type: ErrorType = ErrorType.INTERNAL,
            details: Optional[Dict[str, Any]] = None,
            status_code: int = 500,
    ) -> None:
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        self.status_code = status_code
        self.timestamp = datetime.now().isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class RequestValidationFailed(RenoMatchError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorType.VALIDATION, details, 400)


class CandidateDataError(RenoMatchError):
    """A candidate record from a provider could not be turned into a model."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorType.CANDIDATE_DATA, details, 500)


class ProviderError(RenoMatchError):
    """Every configured candidate provider failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorType.PROVIDER, details, 502)
