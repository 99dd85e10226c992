"""
Audit logging for billing events.

Every change to an invoice, customer or the shop settings is written as one
JSON line on the "audit" logger so the trail can be shipped separately from
application logs.
"""
import logging
import json
from datetime import datetime
from typing import Any, Optional, Dict

audit_logger = logging.getLogger("audit")


class AuditLog:
    """Central audit logging for billing events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "status_change"
        resource_type: str,  # "invoice", "customer", "settings"
        resource_id: Optional[int],
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log business-critical actions.

        Usage:
            AuditLog.log_action("create", "invoice", 12, changes={"total": 62830})
            AuditLog.log_action("delete", "customer", 4)
        """
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_payment(
        invoice_id: int,
        invoice_number: Optional[str],
        amount: Any,
        cash_received: Any,
        balance_amount: Any,
        status: str,
    ):
        """
        Log a cash payment applied to an invoice.

        Usage:
            AuditLog.log_payment(7, "INV-MJ250007", 30000, 30000, 32830, "unpaid")
        """
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "event_type": "invoice.payment",
            "resource_id": invoice_id,
            "invoice_number": invoice_number,
            "amount": amount,
            "cash_received": cash_received,
            "balance_amount": balance_amount,
            "status": status,
        }

        audit_logger.info(json.dumps(log_entry, default=str))
