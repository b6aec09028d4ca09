"""
POS Refund Engine — Application Service
=========================================
Recomputes a sale for the items the customer keeps and derives the net
cash movement against what was originally paid.

RULES (NON-NEGOTIABLE):
- The campaign is resolved by id from the catalog; an unknown campaign
  refuses the refund, it is never treated as "no discount"
- Kept items are priced by the unmodified discount service
- net_cash_change = new final total − originally paid amount
  (positive: customer pays more, negative: money back, zero: no cash)
- The refund record never carries an outstanding balance and is never
  an installment

Nothing here persists; the record is returned for the caller to store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from core.time.clock import Clock, get_default_clock
from engines.pricing.campaigns import CampaignCatalog
from engines.pricing.context import LineItem
from engines.pricing.errors import CampaignNotFoundError, InvalidPayloadError
from engines.pricing.result import DiscountResult
from engines.pricing.services import DiscountService
from engines.refund.models import (
    PaymentDetails,
    TransactionHeader,
    TransactionLine,
    TransactionRecord,
)

logger = logging.getLogger("pos.refund")

REFUND_STATUS = "refund"
ZERO = Decimal(0)

ERROR_CAMPAIGN_NOT_FOUND = "CAMPAIGN_NOT_FOUND"
ERROR_INVALID_REQUEST = "INVALID_REQUEST"


# ══════════════════════════════════════════════════════════════
# OUTCOME
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RefundOutcome:
    ok: bool
    transaction: Optional[TransactionRecord] = None
    error_code: Optional[str] = None
    message: str = ""

    def __post_init__(self):
        if self.ok and self.transaction is None:
            raise ValueError("A successful refund outcome must carry a transaction.")
        if not self.ok and not self.error_code:
            raise ValueError("A failed refund outcome must carry an error_code.")

    @classmethod
    def success(cls, transaction: TransactionRecord) -> "RefundOutcome":
        return cls(ok=True, transaction=transaction)

    @classmethod
    def failure(cls, error_code: str, message: str) -> "RefundOutcome":
        return cls(ok=False, error_code=error_code, message=message)


# ══════════════════════════════════════════════════════════════
# LINE CONVERSION
# ══════════════════════════════════════════════════════════════

def transaction_lines_to_line_items(
    lines: Iterable[TransactionLine],
) -> tuple[LineItem, ...]:
    """
    Rebuild cart lines from a stored sale.

    original_quantity is pinned to the sold quantity so a one-time manual
    discount is pro-rated when the customer keeps fewer units.
    """
    return tuple(
        LineItem(
            line_id=line.sale_item_id,
            product_id=line.product_id,
            batch_id=line.batch_id,
            unit_price=line.unit_price,
            quantity=line.quantity,
            custom_discount_type=line.custom_discount_type,
            custom_discount_value=line.custom_discount_value,
            custom_apply_fixed_once=line.custom_apply_fixed_once,
            original_quantity=line.quantity,
            batch_number=line.batch_number,
        )
        for line in lines
    )


def _to_line_item(item: Union[LineItem, dict]) -> LineItem:
    if isinstance(item, LineItem):
        return item
    if not isinstance(item, dict):
        raise InvalidPayloadError(f"Unsupported kept item: {type(item).__name__}")
    try:
        return LineItem.from_dict(item)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise InvalidPayloadError(f"Invalid kept item: {exc}") from exc


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class RefundService:
    def __init__(
        self,
        catalog: CampaignCatalog,
        discount_service: Optional[DiscountService] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._catalog = catalog
        self._discounts = discount_service or DiscountService()
        self._clock = clock or get_default_clock()

    def build_refund_transaction(
        self,
        original_transaction: Union[TransactionRecord, dict],
        kept_items: Iterable[Union[LineItem, dict]],
        campaign_id: Optional[str] = None,
    ) -> TransactionRecord:
        """Raises CampaignNotFoundError or InvalidPayloadError."""
        original = (
            original_transaction
            if isinstance(original_transaction, TransactionRecord)
            else TransactionRecord.from_dict(original_transaction)
        )
        resolved_id = campaign_id or original.header.campaign_id
        campaign = self._catalog.find_by_id(resolved_id)
        if campaign is None:
            logger.warning(
                "Refund for %s refused: campaign '%s' not found.",
                original.header.transaction_id, resolved_id,
            )
            raise CampaignNotFoundError(resolved_id)

        kept = tuple(_to_line_item(item) for item in kept_items)
        result = self._discounts.calculate_discounts(kept, campaign)

        original_paid = original.payment_details.paid_amount
        net_cash_change = result.final_total - original_paid
        now = self._clock.now_utc()

        header = TransactionHeader(
            transaction_id=f"refund-{int(now.timestamp() * 1000)}",
            transaction_date=now,
            subtotal=result.original_subtotal,
            total_discount_amount=result.total_discount,
            final_total=result.final_total,
            total_items=len(kept),
            total_quantity=sum(item.quantity for item in kept),
            status=REFUND_STATUS,
            campaign_id=campaign.id,
            original_transaction_id=original.header.transaction_id,
            is_gift_receipt=False,
        )
        record = TransactionRecord(
            header=header,
            lines=_build_lines(kept, result, original),
            payment_details=PaymentDetails(
                paid_amount=net_cash_change,
                payment_method=original.payment_details.payment_method,
                outstanding_amount=ZERO,
                is_installment=False,
            ),
            customer_details=original.customer_details,
            applied_discounts_log=tuple(
                info.to_dict() for info in result.applied_rules_summary()
            ),
        )
        logger.info(
            "Refund %s for %s: kept total %s, paid %s, net cash change %s.",
            header.transaction_id, original.header.transaction_id,
            result.final_total, original_paid, net_cash_change,
        )
        return record

    def process_refund(
        self,
        original_transaction: Any,
        kept_items: Iterable[Union[LineItem, dict]],
        campaign_id: Optional[str] = None,
    ) -> RefundOutcome:
        try:
            record = self.build_refund_transaction(
                original_transaction, kept_items, campaign_id,
            )
        except CampaignNotFoundError as exc:
            return RefundOutcome.failure(ERROR_CAMPAIGN_NOT_FOUND, str(exc))
        except InvalidPayloadError as exc:
            return RefundOutcome.failure(ERROR_INVALID_REQUEST, str(exc))
        return RefundOutcome.success(record)


def _build_lines(
    kept: tuple,
    result: DiscountResult,
    original: TransactionRecord,
) -> tuple:
    names = {line.sale_item_id: line.product_name for line in original.lines}
    names_by_batch = {line.batch_id: line.product_name for line in original.lines}

    lines = []
    for item in kept:
        line_result = result.get_line_item(item.line_id)
        before = item.line_total
        discount = line_result.total_discount if line_result is not None else ZERO
        lines.append(TransactionLine(
            sale_item_id=item.line_id,
            product_id=item.product_id,
            product_name=names.get(item.line_id) or names_by_batch.get(item.batch_id, ""),
            batch_id=item.batch_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total_before_discount=before,
            line_discount=discount,
            line_total_after_discount=before - discount,
            batch_number=item.batch_number,
            custom_discount_value=item.custom_discount_value,
            custom_discount_type=item.custom_discount_type,
            custom_apply_fixed_once=item.custom_apply_fixed_once,
        ))
    return tuple(lines)
