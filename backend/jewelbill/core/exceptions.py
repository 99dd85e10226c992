"""
Domain exceptions and HTTP error factory.

Services raise the JewelBillError subclasses below; routes translate them into
HTTPException through BusinessError so clients get a stable, non-leaky message
while the detail goes to the log.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class JewelBillError(Exception):
    """Base class for billing domain errors."""


class CustomerNotFound(JewelBillError):
    def __init__(self, customer_id: int):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class InvoiceNotFound(JewelBillError):
    def __init__(self, ref):
        super().__init__(f"Invoice {ref} not found")
        self.ref = ref


class InvoiceNumberTaken(JewelBillError):
    def __init__(self, invoice_number: str):
        super().__init__(f"Invoice number {invoice_number} already exists")
        self.invoice_number = invoice_number


class InvalidCashAmount(JewelBillError):
    """Cash payment amount missing or not a non-negative number."""


class InvalidInvoiceStatus(JewelBillError):
    """Status outside draft / unpaid / paid / cancelled / overdue."""


class MissingRequiredField(JewelBillError):
    """A line item lacks a field the pricing policy needs (weight or rate)."""


class BusinessError:
    """Build HTTPExceptions with safe messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        404 for a missing customer or invoice.

        Example:
            if not invoice:
                raise BusinessError.not_found("Invoice")
        """
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")

        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business logic errors.

        OK to include specific details here since the caller caused the issue.
        Examples: "Cash received amount is required", "Invalid status"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for resource conflicts.
        Example: "Invoice number already exists"
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )
