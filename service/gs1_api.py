"""
GS1 API endpoints.

GTIN validation/normalization, SSCC issuance from the configured sequence
source, and building or parsing unit-label element strings.
"""

import logging
from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from gs1.element_string import build_gs1_payload, format_gs1_for_display, parse_gs1, to_human_readable
from gs1.identifiers import normalize_gtin, validate_gtin
from gs1.sequences import sequence_for_company
from gs1.sscc import make_ssccs, sscc_to_urn, validate_sscc
from service.auth import verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gs1", tags=["gs1"], dependencies=[Depends(verify_api_key)])

MAX_SSCC_BATCH = 10000


class GTINRequest(BaseModel):
    gtin: str


class SSCCRequest(BaseModel):
    company_id: str = Field(..., alias="companyId", min_length=1)
    quantity: int = Field(1, ge=1, le=MAX_SSCC_BATCH)
    extension_digit: Optional[int] = Field(None, alias="extensionDigit", ge=1, le=9)


class PayloadRequest(BaseModel):
    gtin: str
    expiry: date
    mfg_date: date = Field(..., alias="mfgDate")
    batch: str
    serial: str
    mrp: Optional[Union[float, str]] = None
    sku: Optional[str] = None
    company: Optional[str] = None


class ParseRequest(BaseModel):
    data: str


@router.post("/gtin/validate")
async def gtin_validate(request: GTINRequest):
    """
    Validate a GTIN of any accepted length.

    A bad length or check digit is reported in the body, not as an error status.
    """
    return validate_gtin(request.gtin).to_dict()


@router.post("/gtin/normalize")
async def gtin_normalize(request: GTINRequest):
    """Zero-pad a GTIN to 14 digits (400 if it has the wrong number of digits)."""
    return {"normalized": normalize_gtin(request.gtin)}


@router.post("/sscc/generate")
async def sscc_generate(request: SSCCRequest):
    """
    Issue SSCCs for a company from its sequence source.

    Example:
        POST /gs1/sscc/generate
        {"companyId": "acme", "quantity": 2, "extensionDigit": 3}
    """
    source = sequence_for_company(request.company_id)
    ssccs = make_ssccs(source, request.quantity, request.extension_digit)
    logger.info(f"Issued {len(ssccs)} SSCC(s) for company {request.company_id}")
    return {
        "companyId": request.company_id,
        "count": len(ssccs),
        "ssccs": ssccs,
    }


@router.post("/payload")
async def payload(request: PayloadRequest):
    """Build the machine-format element string for a unit label."""
    machine = build_gs1_payload(
        gtin=request.gtin,
        expiry=request.expiry,
        mfg_date=request.mfg_date,
        batch=request.batch,
        serial=request.serial,
        mrp=request.mrp,
        sku=request.sku,
        company=request.company,
    )
    return {"payload": machine, "humanReadable": to_human_readable(machine)}


@router.post("/parse")
async def parse(request: ParseRequest):
    """Parse scanned barcode data (machine or parenthesized format)."""
    data = parse_gs1(request.data)
    result = data.to_dict()
    result["display"] = format_gs1_for_display(data)
    if data.sscc and validate_sscc(data.sscc):
        result["ssccUrn"] = sscc_to_urn(data.sscc)
    return result
