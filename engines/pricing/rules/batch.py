"""
Batch-specific rules: one configuration bound to one exact stock batch.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from engines.pricing.config import BatchDiscountConfiguration, Campaign
from engines.pricing.context import DiscountContext, LineItem
from engines.pricing.evaluation import generate_rule_id, is_one_time_rule
from engines.pricing.result import AppliedRuleInfo, DiscountApplication, DiscountResult
from engines.pricing.rules.base import DiscountRule, RuleCandidate, RuleKind, first_positive

logger = logging.getLogger("pos.pricing")


class BatchSpecificRule(DiscountRule):
    """
    Line-value rule, then line-quantity rule, for the configured batch.

    Mutually exclusive: only the first rule producing a positive discount
    is applied. Lines that already carry any discount are left alone.
    """

    kind = RuleKind.BATCH
    is_potentially_repeatable = True

    def __init__(self, config: BatchDiscountConfiguration, campaign: Campaign):
        self._config = config
        self._campaign_name = campaign.name
        self._campaign_one_time = campaign.is_one_time_per_transaction

    @property
    def batch_id(self) -> str:
        return self._config.product_batch_id

    def get_id(self, item: Optional[LineItem] = None) -> str:
        base = f"batch-{self._config.id}-{self._config.product_batch_id}"
        return f"{base}-{item.line_id}" if item else base

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        if not self._config.is_active:
            return

        for item in context.items:
            if item.batch_id != self._config.product_batch_id:
                continue
            line_result = result.get_line_item(item.line_id)
            if line_result is None:
                logger.error("No line result for %s although the line exists.", item.line_id)
                continue
            if item.has_custom_discount or line_result.total_discount > 0:
                logger.debug(
                    "Line %s already discounted; batch rule %s skipped.",
                    item.line_id, self._config.id,
                )
                continue
            self._apply_to_line(item, line_result)

    def _apply_to_line(self, item: LineItem, line_result) -> None:
        line_total = item.line_total
        candidates = (
            RuleCandidate(
                self._config.line_item_value_rule,
                "batch_config_line_item_value",
                line_total,
                "Batch line value rule",
            ),
            RuleCandidate(
                self._config.line_item_quantity_rule,
                "batch_config_line_item_quantity",
                Decimal(item.quantity),
                "Batch quantity rule",
            ),
        )
        chosen, amount = first_positive(candidates, item.unit_price, item.quantity, line_total)
        if chosen is None:
            return

        is_one_time = is_one_time_rule(chosen.config, self._campaign_one_time)
        line_result.add_discount(DiscountApplication(
            rule_id=generate_rule_id(
                "batch", self._config.id, chosen.rule_type, item.product_id, item.batch_id,
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
                batch_id_affected=item.batch_id,
                applied_once=is_one_time,
            ),
        ))
