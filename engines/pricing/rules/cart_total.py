"""
Cart-total rules: evaluated once against the whole cart, after every
item-level strategy has run.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from engines.pricing.config import Campaign
from engines.pricing.context import DiscountContext, LineItem
from engines.pricing.evaluation import generate_rule_id, is_one_time_rule
from engines.pricing.result import AppliedRuleInfo, DiscountApplication, DiscountResult
from engines.pricing.rules.base import DiscountRule, RuleCandidate, RuleKind, first_positive


class CartTotalRule(DiscountRule):
    """Cart price rule (tested on post-item subtotal) then cart quantity rule."""

    kind = RuleKind.CART_TOTAL
    is_potentially_repeatable = False

    def __init__(self, campaign: Campaign):
        self._campaign = campaign

    def get_id(self, item: Optional[LineItem] = None) -> str:
        return f"cart-{self._campaign.id}"

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        campaign = self._campaign
        subtotal = result.subtotal_after_item_discounts
        candidates = (
            RuleCandidate(
                campaign.global_cart_price_rule,
                "campaign_global_cart_price",
                subtotal,
                "Cart price threshold rule",
            ),
            RuleCandidate(
                campaign.global_cart_quantity_rule,
                "campaign_global_cart_quantity",
                Decimal(context.total_quantity),
                "Cart quantity threshold rule",
            ),
        )
        # Cart rules have no single unit price; fixed amounts apply as a flat value.
        chosen, amount = first_positive(candidates, subtotal, 1, subtotal)
        if chosen is None:
            return

        is_one_time = is_one_time_rule(chosen.config, campaign.is_one_time_per_transaction)
        result.add_cart_discount(DiscountApplication(
            rule_id=generate_rule_id("cart", campaign.id, chosen.rule_type),
            amount=amount,
            description=f"{chosen.description}: '{chosen.config.name}' applied.",
            is_one_time=is_one_time,
            applied_rule_info=AppliedRuleInfo(
                campaign_name=campaign.name,
                source_rule_name=chosen.config.name,
                total_calculated_discount=amount,
                rule_type=chosen.rule_type,
                applied_once=is_one_time,
            ),
        ))
