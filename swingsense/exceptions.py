"""
Custom Exceptions for SwingSense
Structured errors with machine-readable codes.

Indeterminate measurements (low confidence, zero-length vectors, zero time
deltas) are not errors: they surface as None values and "No data" statuses.
"""

from typing import Optional, Dict, Any, List


class SwingSenseException(Exception):
    """Base exception for all SwingSense errors"""

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a serializable error payload"""
        result = {
            "error": self.code,
            "detail": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Input Errors
# =============================================================================

class ValidationError(SwingSenseException):
    """Raised when a caller-supplied argument is invalid"""
    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidPoseSequence(SwingSenseException):
    """Raised when a pose-source payload does not match the expected contract"""
    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        details = {"errors": errors} if errors else {}
        super().__init__(message, "INVALID_POSE_SEQUENCE", details)


# =============================================================================
# Processing Errors
# =============================================================================

class AnalysisError(SwingSenseException):
    """Raised when an analysis stage fails unexpectedly"""
    def __init__(self, message: str, stage: Optional[str] = None):
        details = {"stage": stage} if stage else {}
        super().__init__(message, "ANALYSIS_ERROR", details)
