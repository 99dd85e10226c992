"""Invoices: create, list, lookup, update, status, cash payments, receipt PDF."""
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jewelbill.api.deps import get_db
from jewelbill.core.exceptions import (
    BusinessError,
    CustomerNotFound,
    InvalidCashAmount,
    InvalidInvoiceStatus,
    InvoiceNotFound,
    InvoiceNumberTaken,
    MissingRequiredField,
)
from jewelbill.schemas.common import Pagination
from jewelbill.schemas.invoice import (
    CashPayment,
    CashPaymentResponse,
    InvoiceCreate,
    InvoiceList,
    InvoiceResponse,
    InvoiceStatusUpdate,
    InvoiceUpdate,
)
from jewelbill.services import invoice_service
from jewelbill.services.pdf_service import generate_invoice_pdf

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=InvoiceList)
def list_invoices(
    status: str | None = Query(None, description="Status filter; 'all' for every status"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    invoices, total, stats = invoice_service.list_invoices(
        db, status=status, search=search, page=page, limit=limit, sort_by=sort_by, order=order,
    )
    return InvoiceList(invoices=invoices, pagination=Pagination.build(page, limit, total), stats=stats)


@router.get("/number/{invoice_number}", response_model=InvoiceResponse)
def get_invoice_by_number(invoice_number: str, db: Session = Depends(get_db)):
    try:
        return invoice_service.get_invoice_by_number(db, invoice_number)
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    try:
        return invoice_service.get_invoice(db, invoice_id)
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(data: InvoiceCreate, db: Session = Depends(get_db)):
    """Price the items, apply tax/discount/old gold, allocate a number and save."""
    try:
        return invoice_service.create_invoice(db, data.model_dump())
    except CustomerNotFound as e:
        raise BusinessError.not_found("Customer", reason=str(e))
    except MissingRequiredField as e:
        raise BusinessError.bad_request(str(e))
    except InvoiceNumberTaken as e:
        raise BusinessError.conflict(str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise BusinessError.server_error(e)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(invoice_id: int, data: InvoiceUpdate, db: Session = Depends(get_db)):
    """Patch details; any pricing input recomputes every derived amount."""
    try:
        return invoice_service.update_invoice(db, invoice_id, data.model_dump(exclude_unset=True))
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))
    except MissingRequiredField as e:
        raise BusinessError.bad_request(str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise BusinessError.server_error(e)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(invoice_id: int, data: InvoiceStatusUpdate, db: Session = Depends(get_db)):
    try:
        return invoice_service.set_invoice_status(db, invoice_id, data.status)
    except InvalidInvoiceStatus:
        raise BusinessError.bad_request("Invalid status")
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))


@router.patch("/{invoice_id}/cash-received", response_model=CashPaymentResponse)
def add_cash_received(invoice_id: int, data: CashPayment, db: Session = Depends(get_db)):
    """Record a payment. The amount is added to what was already received."""
    try:
        invoice, result = invoice_service.record_cash_payment(db, invoice_id, data.cash_received)
    except InvalidCashAmount as e:
        raise BusinessError.bad_request(str(e))
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise BusinessError.server_error(e)

    return CashPaymentResponse(
        message="Cash received updated successfully",
        invoice=InvoiceResponse.model_validate(invoice),
        additional_amount=float(result["additional_amount"]),
        total_cash_received=float(result["cash_received"]),
    )


@router.delete("/{invoice_id}", response_model=dict)
def delete_invoice(invoice_id: int, db: Session = Depends(get_db)):
    try:
        invoice_service.delete_invoice(db, invoice_id)
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))
    return {"message": "Invoice deleted successfully", "id": invoice_id}


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(invoice_id: int, db: Session = Depends(get_db)):
    try:
        pdf = generate_invoice_pdf(db, invoice_id)
    except InvoiceNotFound as e:
        raise BusinessError.not_found("Invoice", reason=str(e))

    logger.info(f"[PDF] Generated receipt for invoice {invoice_id}")
    return StreamingResponse(
        pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=invoice_{invoice_id}.pdf"},
    )
