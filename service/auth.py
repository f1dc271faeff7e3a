"""
Service key check for the billing and GS1 routers.

Callers send the shared key in X-API-Key. SERVICE_API_KEY is read per request,
so a rotated key takes effect without a restart.
"""

import logging
import os
import secrets

from fastapi import HTTPException, Security
from fastapi.security.api_key import APIKeyHeader

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
service_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def keys_match(supplied, expected: str) -> bool:
    """Constant-time comparison; a missing key never matches."""
    if not supplied:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


async def verify_api_key(supplied: str = Security(service_key_header)) -> bool:
    expected = os.getenv("SERVICE_API_KEY", "")
    if not expected:
        logger.error("SERVICE_API_KEY is not set; rejecting request")
        raise HTTPException(status_code=500, detail="API key not configured")
    if not keys_match(supplied, expected):
        raise HTTPException(status_code=401, detail=f"Invalid or missing {API_KEY_HEADER} header")
    return True
