from __future__ import annotations

import logging

from fastapi import APIRouter, Path, Request
from fastapi.responses import JSONResponse

from numeris.constants import MAX_BIGINT
from numeris.errors import ConstraintViolation, InvoiceNotFound, StorageUnavailable
from web.deps import get_invoice_service
from web.schemas import CreateInvoiceRequest, CreateInvoiceResponse, InvoiceResponse, rfc3339

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices")


def error_response(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=status_code)


@router.post("", status_code=201, response_model=CreateInvoiceResponse)
async def create_invoice(request: Request, body: CreateInvoiceRequest):
    logger.info("POST /invoices with %d line items", len(body.line_items))
    invoice_service = get_invoice_service(request)
    try:
        invoice = invoice_service.create_invoice(body.to_draft())
    except ValueError as exc:
        logger.warning("Invoice rejected during pricing: %s", exc)
        return error_response(exc, 400)
    except ConstraintViolation as exc:
        logger.warning("Invoice rejected by constraint: %s", exc)
        return error_response(exc, 403)
    except StorageUnavailable as exc:
        logger.error("Invoice create failed: %s", exc)
        return error_response(exc, 500)
    return CreateInvoiceResponse(
        invoice_number=invoice.invoice_number,
        created_at=rfc3339(invoice.created_at),
    )


@router.get("/{invoice_number}", response_model=InvoiceResponse)
async def get_invoice(request: Request, invoice_number: int = Path(ge=1, le=MAX_BIGINT)):
    logger.info("GET /invoices/%d", invoice_number)
    invoice_service = get_invoice_service(request)
    try:
        invoice = invoice_service.get_invoice(invoice_number)
    except InvoiceNotFound as exc:
        return error_response(exc, 404)
    except StorageUnavailable as exc:
        logger.error("Invoice read failed: %s", exc)
        return error_response(exc, 500)
    return InvoiceResponse.from_invoice(invoice)
