"""
"Buy X, Get Y": qualifying quantity of a trigger product discounts units
of a target product.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from engines.pricing.config import BuyGetRule
from engines.pricing.context import DiscountContext, LineItem
from engines.pricing.result import AppliedRuleInfo, DiscountApplication, DiscountResult
from engines.pricing.rules.base import DiscountRule, RuleKind

logger = logging.getLogger("pos.pricing")

HUNDRED = Decimal(100)


class BuyXGetYRule(DiscountRule):
    """
    Trigger quantity is summed over every line of buy_product_id.

    Repeatable rules fire once per full multiple of buy_quantity (capped by
    max_applications when set); single-shot rules fire once. Each firing
    grants get_quantity discounted units, spread over undiscounted lines of
    get_product_id in cart order.
    """

    kind = RuleKind.BUY_GET

    def __init__(self, config: BuyGetRule, campaign_name: str = "Unknown Campaign"):
        self._config = config
        self._campaign_name = campaign_name
        self.is_potentially_repeatable = config.is_repeatable

    def get_id(self, item: Optional[LineItem] = None) -> str:
        base = f"bogo-{self._config.id}"
        return f"{base}-{item.line_id}" if item else base

    def times_applicable(self, context: DiscountContext) -> int:
        cfg = self._config
        bought = sum(i.quantity for i in context.items if i.product_id == cfg.buy_product_id)
        if bought < cfg.buy_quantity:
            return 0
        if not cfg.is_repeatable:
            return 1
        times = bought // cfg.buy_quantity
        if cfg.max_applications is not None:
            times = min(times, cfg.max_applications)
        return times

    def unit_discount(self, unit_price: Decimal) -> Decimal:
        cfg = self._config
        if cfg.discount_type == "free":
            return unit_price
        if cfg.discount_type == "percentage":
            return unit_price * (cfg.discount_value / HUNDRED)
        return cfg.discount_value

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        cfg = self._config
        times = self.times_applicable(context)
        if times <= 0:
            return

        remaining_units = times * cfg.get_quantity
        logger.debug(
            "Buy-get rule '%s' fires %s time(s); %s unit(s) to discount.",
            cfg.name, times, remaining_units,
        )

        for item in context.items:
            if remaining_units <= 0:
                break
            if item.product_id != cfg.get_product_id or item.has_custom_discount:
                continue
            line_result = result.get_line_item(item.line_id)
            if line_result is None or line_result.total_discount > 0:
                continue

            units = min(item.quantity, remaining_units)
            if units <= 0:
                continue
            ceiling = item.unit_price * units
            amount = min(self.unit_discount(item.unit_price) * units, ceiling)
            if amount <= 0:
                continue

            line_result.add_discount(DiscountApplication(
                rule_id=self.get_id(),
                amount=amount,
                description=(
                    f"{cfg.name}: Buy {cfg.buy_quantity} {cfg.buy_product_id}, "
                    f"Get {cfg.get_quantity} {cfg.get_product_id}"
                ),
                is_one_time=not cfg.is_repeatable,
                applied_rule_info=AppliedRuleInfo(
                    campaign_name=self._campaign_name,
                    source_rule_name=cfg.name,
                    total_calculated_discount=amount,
                    rule_type="buy_get_rule",
                    product_id_affected=item.product_id,
                    applied_once=not cfg.is_repeatable,
                ),
            ))
            remaining_units -= units
