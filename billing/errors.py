"""
Billing errors and the standard error response shape.

Every billing failure that reaches an HTTP caller is a BillingError carrying a
code; the code decides the status and whether the client may retry.
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class BillingErrorCode(str, Enum):
    # Validation
    INVALID_REQUEST = "INVALID_REQUEST"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"

    # Resources
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Billing
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    INVALID_COUPON = "INVALID_COUPON"
    PRORATION_FAILED = "PRORATION_FAILED"

    # System
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_HTTP_STATUS = {
    BillingErrorCode.INVALID_REQUEST: 400,
    BillingErrorCode.MISSING_REQUIRED_FIELD: 400,
    BillingErrorCode.INVALID_FIELD_VALUE: 400,
    BillingErrorCode.INVALID_COUPON: 400,
    BillingErrorCode.PRORATION_FAILED: 400,
    BillingErrorCode.RESOURCE_NOT_FOUND: 404,
    BillingErrorCode.INSUFFICIENT_CREDITS: 402,
}


class BillingError(Exception):
    """Billing failure with a machine-readable code."""

    def __init__(
        self,
        message: str,
        code: BillingErrorCode = BillingErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
        retry_after: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.retryable = retryable
        self.retry_after = retry_after
        self.correlation_id = correlation_id

    @classmethod
    def invalid_field(cls, field: str, message: str) -> "BillingError":
        return cls(message, BillingErrorCode.INVALID_FIELD_VALUE, details={"field": field})

    @classmethod
    def not_found(cls, resource: str) -> "BillingError":
        return cls(f"{resource} not found", BillingErrorCode.RESOURCE_NOT_FOUND)

    @classmethod
    def database_error(cls, message: str) -> "BillingError":
        return cls(
            f"Database error: {message}",
            BillingErrorCode.DATABASE_ERROR,
            retryable=True,
            retry_after=30,
        )


def generate_correlation_id() -> str:
    """Request-tracking id, e.g. bill_1767225600000_k3j9x2m1q8pz."""
    return f"bill_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


def http_status_for(code: Optional[BillingErrorCode]) -> int:
    return _HTTP_STATUS.get(code, 500)


def error_response(error: Exception, correlation_id: Optional[str] = None) -> Dict[str, Any]:
    """Standard error body; non-billing exceptions become UNKNOWN_ERROR."""
    timestamp = datetime.now(timezone.utc).isoformat()

    if isinstance(error, BillingError):
        body = {
            "success": False,
            "error": error.message,
            "code": error.code.value,
            "correlationId": error.correlation_id or correlation_id or generate_correlation_id(),
            "retryable": error.retryable,
            "timestamp": timestamp,
        }
        if error.details:
            body["details"] = error.details
        if error.retry_after is not None:
            body["retryAfter"] = error.retry_after
        return body

    return {
        "success": False,
        "error": str(error) or "An unexpected error occurred",
        "code": BillingErrorCode.UNKNOWN_ERROR.value,
        "correlationId": correlation_id or generate_correlation_id(),
        "retryable": False,
        "timestamp": timestamp,
    }


def log_billing_error(body: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> None:
    logger.error(
        f"[BILLING ERROR] {body.get('correlationId')} code={body.get('code')} "
        f"error={body.get('error')} context={context or {}}"
    )
