"""
Serialization Core API Service

FastAPI service exposing the billing engine and GS1 identifier tools.

Endpoints:
- POST /billing/calculate-final-amount - Discount, GST and final amount
- POST /billing/calculate-tax - GST on an amount
- POST /billing/calculate-cart-amount - Add-on cart in paise
- POST /billing/validate-coupon - Coupon check for a company
- POST /billing/subscription-quote - Plan quote for a company
- POST /billing/proration - Plan change charge/credit
- POST /gs1/gtin/validate - GTIN check digit validation
- POST /gs1/gtin/normalize - GTIN to 14 digits
- POST /gs1/sscc/generate - Issue SSCCs
- POST /gs1/payload - Build unit label element string
- POST /gs1/parse - Parse scanned barcode data
- GET /health - Health check with component status
- GET / - Root health check
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from billing.errors import BillingError, error_response, generate_correlation_id, http_status_for, log_billing_error
from database.connection import engine
from gs1.element_string import GS1PayloadError
from gs1.identifiers import GTINValidationError
from gs1.sscc import SSCCValidationError
from service.billing_api import router as billing_router
from service.gs1_api import router as gs1_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Serialization Core API",
    description="Billing calculations and GS1 identifiers for pharma serialization",
    version=VERSION
)

app.include_router(billing_router)
app.include_router(gs1_router)

# Allow local tools and UIs
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
    body = error_response(exc, correlation_id)
    log_billing_error(body, {"path": request.url.path})
    return JSONResponse(status_code=http_status_for(exc.code), content=body)


@app.exception_handler(GTINValidationError)
@app.exception_handler(SSCCValidationError)
@app.exception_handler(GS1PayloadError)
async def gs1_error_handler(request: Request, exc: ValueError):
    logger.warning(f"GS1 validation failed on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


class HealthResponse(BaseModel):
    """Health check response."""
    service: str
    status: str
    version: str
    database_available: bool
    api_key_configured: bool
    sscc_sequence_backend: str


@app.get("/", response_model=dict)
async def root():
    """Root health check endpoint."""
    return {
        "service": "Serialization Core API",
        "status": "operational",
        "version": VERSION,
        "endpoints": [
            "GET /health",
            "POST /billing/calculate-final-amount",
            "POST /billing/calculate-tax",
            "POST /billing/calculate-cart-amount",
            "POST /billing/validate-coupon",
            "POST /billing/subscription-quote",
            "POST /billing/proration",
            "POST /gs1/gtin/validate",
            "POST /gs1/gtin/normalize",
            "POST /gs1/sscc/generate",
            "POST /gs1/payload",
            "POST /gs1/parse",
        ]
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Checks:
    - Database connectivity
    - API key configuration
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database_available = True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database_available = False

    return {
        "service": "Serialization Core API",
        "status": "operational" if database_available else "degraded",
        "version": VERSION,
        "database_available": database_available,
        "api_key_configured": bool(os.getenv("SERVICE_API_KEY")),
        "sscc_sequence_backend": os.getenv("SSCC_SEQUENCE_BACKEND", "database"),
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
