"""
Product-level rules: keyed by the general product, so every batch of
that product is affected.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from engines.pricing.config import Campaign, ProductDiscountConfiguration
from engines.pricing.context import DiscountContext, LineItem
from engines.pricing.evaluation import generate_rule_id, is_one_time_rule
from engines.pricing.result import AppliedRuleInfo, DiscountApplication, DiscountResult
from engines.pricing.rules.base import DiscountRule, RuleCandidate, RuleKind, first_positive


class ProductLevelRule(DiscountRule):
    kind = RuleKind.PRODUCT
    is_potentially_repeatable = True

    def __init__(self, config: ProductDiscountConfiguration, campaign: Campaign):
        self._config = config
        self._campaign_name = campaign.name
        self._campaign_one_time = campaign.is_one_time_per_transaction

    @property
    def product_id(self) -> str:
        return self._config.product_id

    def get_id(self, item: Optional[LineItem] = None) -> str:
        base = f"product-{self._config.id}-{self._config.product_id}"
        return f"{base}-{item.line_id}" if item else base

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        if not self._config.is_active:
            return

        for item in context.items:
            if item.product_id != self._config.product_id:
                continue
            line_result = result.get_line_item(item.line_id)
            if line_result is None or item.has_custom_discount:
                continue
            if line_result.total_discount > 0:
                continue

            line_total = item.line_total
            quantity = Decimal(item.quantity)
            candidates = (
                RuleCandidate(
                    self._config.line_item_value_rule,
                    "product_config_line_item_value",
                    line_total,
                    "Product line value rule",
                ),
                RuleCandidate(
                    self._config.line_item_quantity_rule,
                    "product_config_line_item_quantity",
                    quantity,
                    "Product quantity rule",
                ),
                RuleCandidate(
                    self._config.specific_qty_threshold_rule,
                    "product_config_specific_qty_threshold",
                    quantity,
                    "Product quantity threshold rule",
                ),
                RuleCandidate(
                    self._config.specific_unit_price_threshold_rule,
                    "product_config_specific_unit_price",
                    item.unit_price,
                    "Product unit price threshold rule",
                ),
            )
            chosen, amount = first_positive(
                candidates, item.unit_price, item.quantity, line_total,
            )
            if chosen is None:
                continue

            is_one_time = is_one_time_rule(chosen.config, self._campaign_one_time)
            line_result.add_discount(DiscountApplication(
                rule_id=generate_rule_id(
                    "product", self._config.id, chosen.rule_type, item.product_id,
                ),
                amount=amount,
                description=f"{chosen.description}: '{chosen.config.name}' applied.",
                is_one_time=is_one_time,
                applied_rule_info=AppliedRuleInfo(
                    campaign_name=self._campaign_name,
                    source_rule_name=chosen.config.name,
                    total_calculated_discount=amount,
                    rule_type=chosen.rule_type,
                    product_id_affected=item.product_id,
                    applied_once=is_one_time,
                ),
            ))
