"""
Error Handling for the Web3 session layer
Exception taxonomy and tracking of swallowed failures

Features:
- Custom exception classes with error codes
- Structured error payloads
- Error tracking and aggregation for failures that are logged, not raised
"""

import logging
import traceback
from datetime import datetime
from typing import Any, Dict, Optional
from enum import Enum

logger = logging.getLogger(__name__)


# ============================================
# ERROR CODES
# ============================================

class ErrorCode(str, Enum):
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================
# CUSTOM EXCEPTIONS
# ============================================

class Web3SessionError(Exception):
    """Base exception for the web3 session layer"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Dict = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict:
        return {
            "success": False,
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp.isoformat()
            }
        }


class ConfigurationError(Web3SessionError):
    """Settings or provider descriptor cannot be resolved"""
    def __init__(self, message: str, details: Dict = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class TransportError(Web3SessionError):
    """An RPC query reported a failure"""
    def __init__(self, message: str, method: str = None, original_error: Any = None):
        details = {}
        if method:
            details["method"] = method
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, ErrorCode.TRANSPORT_ERROR, details)


class PreconditionError(Web3SessionError):
    """Operation called while the guarantee it needs does not hold"""
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PRECONDITION_FAILED)


# ============================================
# ERROR TRACKING
# ============================================

class ErrorTracker:
    """Tracks and aggregates errors that are logged instead of raised"""

    def __init__(self, max_errors: int = 100):
        self.errors: list = []
        self.max_errors = max_errors
        self.error_counts: Dict[str, int] = {}

    def track(self, error: Exception, operation: Optional[str] = None):
        """Track an error"""
        error_type = type(error).__name__

        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1

        error_info = {
            "type": error_type,
            "message": str(error),
            "operation": operation,
            "timestamp": datetime.now().isoformat(),
            "traceback": (
                "".join(traceback.format_exception(type(error), error, error.__traceback__))
                if not isinstance(error, Web3SessionError) else None
            )
        }

        if isinstance(error, Web3SessionError):
            error_info["code"] = error.code.value
            error_info["details"] = error.details

        self.errors.append(error_info)

        # Trim if too many
        if len(self.errors) > self.max_errors:
            self.errors = self.errors[-self.max_errors:]

        logger.debug(f"Error tracked: {error_type} in {operation} - {str(error)[:200]}")

    def get_stats(self) -> Dict:
        """Get error statistics"""
        return {
            "total_errors": sum(self.error_counts.values()),
            "error_counts": dict(self.error_counts),
            "recent_errors": self.errors[-10:],
            "timestamp": datetime.now().isoformat()
        }

    def clear(self):
        """Clear error history"""
        self.errors.clear()
        self.error_counts.clear()
