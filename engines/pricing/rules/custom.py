"""
Manual (cashier-entered) line discounts. Highest precedence.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from engines.pricing.config import RuleConfig
from engines.pricing.context import DiscountContext, DiscountType, LineItem
from engines.pricing.evaluation import evaluate_rule, generate_rule_id
from engines.pricing.result import AppliedRuleInfo, DiscountApplication, DiscountResult
from engines.pricing.rules.base import DiscountRule, RuleKind

logger = logging.getLogger("pos.pricing")

MANUAL_CAMPAIGN_NAME = "Manual Discount"


class CustomItemDiscountRule(DiscountRule):
    kind = RuleKind.CUSTOM
    is_potentially_repeatable = False

    def get_id(self, item: Optional[LineItem] = None) -> str:
        return f"custom-{item.line_id}" if item else "custom-unknown"

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        for item in context.items:
            line_result = result.get_line_item(item.line_id)
            if line_result is None or not item.has_custom_discount:
                continue

            amount = self._amount_for(item)
            if amount <= 0:
                continue

            apply_once = bool(item.custom_apply_fixed_once)
            discount_type = item.custom_discount_type or DiscountType.FIXED
            label = "Fixed" if discount_type is DiscountType.FIXED else "Percentage"
            line_result.add_discount(DiscountApplication(
                rule_id=generate_rule_id(
                    "custom", item.line_id, "manual_discount", item.product_id,
                ),
                amount=amount,
                description=(
                    f"Custom {discount_type.value} discount of "
                    f"{item.custom_discount_value} applied manually."
                ),
                is_one_time=apply_once,
                applied_rule_info=AppliedRuleInfo(
                    campaign_name=MANUAL_CAMPAIGN_NAME,
                    source_rule_name=f"Custom {label} Discount",
                    total_calculated_discount=amount,
                    rule_type="custom_item_discount",
                    product_id_affected=item.product_id,
                    applied_once=apply_once,
                ),
            ))

    def _amount_for(self, item: LineItem) -> Decimal:
        line_total = item.line_total
        discount_type = item.custom_discount_type or DiscountType.FIXED

        if discount_type is DiscountType.FIXED and item.custom_apply_fixed_once:
            amount = item.custom_discount_value
            # Partial refund: keep only the kept units' share of a flat discount.
            if item.original_quantity and item.original_quantity > item.quantity:
                amount = amount / item.original_quantity * item.quantity
                logger.debug(
                    "Pro-rated manual discount on %s: %s of %s units.",
                    item.line_id, item.quantity, item.original_quantity,
                )
        else:
            amount = evaluate_rule(
                RuleConfig(
                    name="Custom Rule",
                    discount_type=discount_type,
                    value=item.custom_discount_value,
                    apply_fixed_once=bool(item.custom_apply_fixed_once),
                ),
                item.unit_price,
                item.quantity,
                line_total,
                line_total,
            )
        return min(amount, line_total)
