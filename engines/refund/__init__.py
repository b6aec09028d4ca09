"""
POS Refund Engine
==================
Partial-return recomputation on top of the pricing engine.
"""

from engines.refund.models import (
    CustomerDetails,
    PaymentDetails,
    TransactionHeader,
    TransactionLine,
    TransactionRecord,
)
from engines.refund.services import (
    RefundOutcome,
    RefundService,
    transaction_lines_to_line_items,
)

__all__ = [
    "CustomerDetails",
    "PaymentDetails",
    "TransactionHeader",
    "TransactionLine",
    "TransactionRecord",
    "RefundOutcome",
    "RefundService",
    "transaction_lines_to_line_items",
]
