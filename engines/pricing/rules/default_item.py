"""
Campaign default item rule: the catch-all for lines no higher-precedence
strategy has discounted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from engines.pricing.config import Campaign, RuleConfig
from engines.pricing.context import DiscountContext, DiscountType, LineItem
from engines.pricing.evaluation import evaluate_rule, generate_rule_id, is_one_time_rule
from engines.pricing.result import (
    AppliedRuleInfo,
    DiscountApplication,
    DiscountResult,
    LineItemResult,
)
from engines.pricing.rules.base import DiscountRule, RuleCandidate, RuleKind, first_positive

PRODUCT_DEFAULTS_CAMPAIGN_ID = "promo-product-defaults"


class DefaultItemRule(DiscountRule):
    """
    Applies the campaign's default line-value, line-quantity,
    quantity-threshold and unit-price rules (first positive wins).

    The product-defaults campaign instead applies the discount stored on
    each line's batch, per unit.
    """

    kind = RuleKind.DEFAULT_ITEM
    is_potentially_repeatable = True

    def __init__(self, campaign: Campaign):
        self._campaign = campaign

    def get_id(self, item: Optional[LineItem] = None) -> str:
        base = f"default-{self._campaign.id}"
        return f"{base}-{item.line_id}" if item else base

    @property
    def uses_batch_defaults(self) -> bool:
        return self._campaign.id == PRODUCT_DEFAULTS_CAMPAIGN_ID

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        for item in context.items:
            line_result = result.get_line_item(item.line_id)
            if line_result is None or item.has_custom_discount:
                continue
            if line_result.total_discount > 0:
                continue

            if self.uses_batch_defaults:
                self._apply_batch_default(item, line_result)
            else:
                self._apply_campaign_default(item, line_result)

    def _apply_batch_default(self, item: LineItem, line_result: LineItemResult) -> None:
        if not item.batch_discount_value or item.batch_discount_value <= 0:
            return
        config = RuleConfig(
            name=f"Batch Default: {item.batch_number or item.batch_id}",
            discount_type=item.batch_discount_type or DiscountType.FIXED,
            value=item.batch_discount_value,
            apply_fixed_once=False,
            description="Default discount stored on the product batch.",
        )
        line_total = item.line_total
        amount = evaluate_rule(config, item.unit_price, item.quantity, line_total, line_total)
        if amount <= 0:
            return
        line_result.add_discount(DiscountApplication(
            rule_id=generate_rule_id(
                "batch-default", item.batch_id, config.discount_type.value, item.product_id,
            ),
            amount=amount,
            description=config.description,
            is_one_time=False,
            applied_rule_info=AppliedRuleInfo(
                campaign_name=self._campaign.name,
                source_rule_name=config.name,
                total_calculated_discount=amount,
                rule_type="product_batch_default_discount",
                product_id_affected=item.product_id,
                batch_id_affected=item.batch_id,
                applied_once=False,
            ),
        ))

    def _apply_campaign_default(self, item: LineItem, line_result: LineItemResult) -> None:
        campaign = self._campaign
        line_total = item.line_total
        quantity = Decimal(item.quantity)
        candidates = (
            RuleCandidate(
                campaign.default_line_item_value_rule,
                "campaign_default_line_item_value",
                line_total,
                "Default line value rule",
            ),
            RuleCandidate(
                campaign.default_line_item_quantity_rule,
                "campaign_default_line_item_quantity",
                quantity,
                "Default quantity rule",
            ),
            RuleCandidate(
                campaign.default_specific_qty_threshold_rule,
                "campaign_default_specific_qty_threshold",
                quantity,
                "Default quantity threshold rule",
            ),
            RuleCandidate(
                campaign.default_specific_unit_price_threshold_rule,
                "campaign_default_specific_unit_price",
                item.unit_price,
                "Default unit price threshold rule",
            ),
        )
        chosen, amount = first_positive(candidates, item.unit_price, item.quantity, line_total)
        if chosen is None:
            return

        is_one_time = is_one_time_rule(chosen.config, campaign.is_one_time_per_transaction)
        line_result.add_discount(DiscountApplication(
            rule_id=generate_rule_id(
                "default", campaign.id, chosen.rule_type, item.product_id,
            ),
            amount=amount,
            description=f"{chosen.description}: '{chosen.config.name}' applied.",
            is_one_time=is_one_time,
            applied_rule_info=AppliedRuleInfo(
                campaign_name=campaign.name,
                source_rule_name=chosen.config.name,
                total_calculated_discount=amount,
                rule_type=chosen.rule_type,
                product_id_affected=item.product_id,
                applied_once=is_one_time,
            ),
        ))
