"""
POS Pricing Engine — Rule Contract
====================================
Every discount mechanism implements DiscountRule. The set of mechanisms
is closed: RuleKind lists them in precedence order, and the orchestrator
builds rule lists in exactly that order.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from engines.pricing.config import RuleConfig, SlotState, slot_state
from engines.pricing.context import DiscountContext, LineItem
from engines.pricing.evaluation import evaluate_rule, validate_rule_config
from engines.pricing.result import DiscountResult

logger = logging.getLogger("pos.pricing")


class RuleKind(Enum):
    """Discount mechanisms, declared highest precedence first."""
    CUSTOM = "custom"
    BATCH = "batch"
    PRODUCT = "product"
    BUY_GET = "buy_get"
    DEFAULT_ITEM = "default_item"
    CART_TOTAL = "cart_total"

    @property
    def precedence(self) -> int:
        return list(RuleKind).index(self)


class DiscountRule(ABC):
    """Contract shared by all strategies."""

    kind: RuleKind
    is_potentially_repeatable: bool = False

    @abstractmethod
    def get_id(self, item: Optional[LineItem] = None) -> str:
        """Stable identifier, optionally narrowed to one line."""

    @abstractmethod
    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        """Evaluate against the context and write discounts into result."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.get_id()}>"


# ══════════════════════════════════════════════════════════════
# FIRST-MATCH EVALUATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RuleCandidate:
    """One configuration slot considered by a first-match strategy."""
    config: Optional[RuleConfig]
    rule_type: str
    condition_value: Decimal
    description: str


def first_positive(
    candidates: Iterable[RuleCandidate],
    unit_price: Decimal,
    quantity: int,
    line_total: Decimal,
) -> tuple[Optional[RuleCandidate], Decimal]:
    """
    Walk candidates in order; return the first that yields a positive
    discount, with that amount. Disabled, absent and invalid slots are
    passed over; invalid ones are logged.
    """
    for candidate in candidates:
        if slot_state(candidate.config) is not SlotState.ENABLED:
            continue
        validation = validate_rule_config(candidate.config)
        if not validation.is_valid:
            logger.warning(
                "Skipping invalid rule configuration %s (%s): %s",
                candidate.config.name or "<unnamed>",
                candidate.rule_type,
                "; ".join(validation.errors),
            )
            continue
        amount = evaluate_rule(
            candidate.config, unit_price, quantity, line_total,
            candidate.condition_value,
        )
        if amount > 0:
            return candidate, amount
    return None, Decimal(0)
