"""
POS Pricing Engine — Discount Result
======================================
The mutable accumulator every rule writes into during one process() call.

RULES (NON-NEGOTIABLE):
- 0 <= line total_discount <= original_price × quantity, always
- 0 <= total_cart_discount <= subtotal after item discounts, always
- Over-discount is clamped on every addition, never rejected
- A one-time rule id is consumed at most once per line (or per cart)
- Records carry the clamped amount, not the requested one

The result object is the only enforcer of these invariants, so rules
never need to know about each other's effects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

from engines.pricing.context import DiscountContext, LineItem

logger = logging.getLogger("pos.pricing")

ZERO = Decimal(0)


# ══════════════════════════════════════════════════════════════
# APPLICATION RECORDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AppliedRuleInfo:
    """Structured record of a fired rule, for receipts and the discount log."""
    campaign_name: str
    source_rule_name: str
    total_calculated_discount: Decimal
    rule_type: str
    product_id_affected: Optional[str] = None
    batch_id_affected: Optional[str] = None
    applied_once: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_name": self.campaign_name,
            "source_rule_name": self.source_rule_name,
            "total_calculated_discount": self.total_calculated_discount,
            "rule_type": self.rule_type,
            "product_id_affected": self.product_id_affected,
            "batch_id_affected": self.batch_id_affected,
            "applied_once": self.applied_once,
        }


@dataclass(frozen=True)
class DiscountApplication:
    """One rule firing against one line or the cart."""
    rule_id: str
    amount: Decimal
    description: str
    applied_rule_info: AppliedRuleInfo
    is_one_time: bool = False

    def clamped_to(self, amount: Decimal) -> "DiscountApplication":
        return replace(
            self,
            amount=amount,
            applied_rule_info=replace(
                self.applied_rule_info, total_calculated_discount=amount,
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "amount": self.amount,
            "description": self.description,
            "is_one_time": self.is_one_time,
            "applied_rule_info": self.applied_rule_info.to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# LINE RESULT
# ══════════════════════════════════════════════════════════════

class LineItemResult:
    """Discount state for one cart line."""

    def __init__(self, line_item: LineItem):
        self.line_id = line_item.line_id
        self.product_id = line_item.product_id
        self.batch_id = line_item.batch_id
        self.original_price = line_item.unit_price
        self.quantity = line_item.quantity
        self.total_discount = ZERO
        self.applied_rules: List[DiscountApplication] = []
        self._one_time_rules_applied: Set[str] = set()

    @property
    def original_total(self) -> Decimal:
        return self.original_price * self.quantity

    @property
    def net_price(self) -> Decimal:
        return self.original_total - self.total_discount

    def has_consumed(self, rule_id: str) -> bool:
        return rule_id in self._one_time_rules_applied

    def add_discount(self, application: DiscountApplication) -> Decimal:
        """
        Add a discount, clamped to the line's remaining value.

        Returns the amount actually applied (0 when nothing changed).
        """
        if application.is_one_time and self.has_consumed(application.rule_id):
            logger.debug(
                "One-time rule %s already applied to line %s; skipping.",
                application.rule_id, self.line_id,
            )
            return ZERO

        applicable = min(application.amount, self.original_total - self.total_discount)
        if applicable <= 0:
            logger.debug(
                "Rule %s has nothing left to discount on line %s.",
                application.rule_id, self.line_id,
            )
            return ZERO

        self.total_discount += applicable
        self.applied_rules.append(application.clamped_to(applicable))
        if application.is_one_time:
            self._one_time_rules_applied.add(application.rule_id)
        logger.debug(
            "Line %s: %s applied %s (requested %s), total discount %s.",
            self.line_id, application.rule_id, applicable,
            application.amount, self.total_discount,
        )
        return applicable

    def reset_one_time_rules(self) -> None:
        self._one_time_rules_applied.clear()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "batch_id": self.batch_id,
            "original_price": self.original_price,
            "quantity": self.quantity,
            "total_discount": self.total_discount,
            "net_price": self.net_price,
            "applied_rules": [a.to_dict() for a in self.applied_rules],
        }


# ══════════════════════════════════════════════════════════════
# CART RESULT
# ══════════════════════════════════════════════════════════════

@dataclass
class DiscountResult:
    """Aggregated discounts for a whole sale."""

    line_items: List[LineItemResult] = field(default_factory=list)
    total_item_discount: Decimal = ZERO
    total_cart_discount: Decimal = ZERO
    applied_cart_rules: List[DiscountApplication] = field(default_factory=list)
    _one_time_cart_rules_applied: Set[str] = field(default_factory=set, repr=False)
    _finalized: bool = field(default=False, repr=False)

    @classmethod
    def for_context(cls, context: DiscountContext) -> "DiscountResult":
        return cls(line_items=[LineItemResult(item) for item in context.items])

    @classmethod
    def empty(cls) -> "DiscountResult":
        result = cls()
        result.finalize()
        return result

    def get_line_item(self, line_id: str) -> Optional[LineItemResult]:
        for line in self.line_items:
            if line.line_id == line_id:
                return line
        return None

    @property
    def subtotal_after_item_discounts(self) -> Decimal:
        return sum((li.net_price for li in self.line_items), ZERO)

    def add_cart_discount(self, application: DiscountApplication) -> Decimal:
        """Add a cart-level discount, clamped to what item discounts left over."""
        if (
            application.is_one_time
            and application.rule_id in self._one_time_cart_rules_applied
        ):
            logger.debug(
                "One-time cart rule %s already applied; skipping.",
                application.rule_id,
            )
            return ZERO

        ceiling = self.subtotal_after_item_discounts - self.total_cart_discount
        applicable = min(application.amount, ceiling)
        if applicable <= 0:
            return ZERO

        self.total_cart_discount += applicable
        self.applied_cart_rules.append(application.clamped_to(applicable))
        if application.is_one_time:
            self._one_time_cart_rules_applied.add(application.rule_id)
        logger.debug(
            "Cart: %s applied %s (requested %s).",
            application.rule_id, applicable, application.amount,
        )
        return applicable

    def finalize(self) -> None:
        """Compute item-level aggregates once all rules have run."""
        if self._finalized:
            raise RuntimeError("DiscountResult.finalize() called twice.")
        self.total_item_discount = sum(
            (li.total_discount for li in self.line_items), ZERO
        )
        self._finalized = True

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    @property
    def total_discount(self) -> Decimal:
        return self.total_item_discount + self.total_cart_discount

    @property
    def original_subtotal(self) -> Decimal:
        return sum((li.original_total for li in self.line_items), ZERO)

    @property
    def final_total(self) -> Decimal:
        return self.original_subtotal - self.total_discount

    def applied_rules_summary(self) -> List[AppliedRuleInfo]:
        """Flat list of everything that fired, lines first then cart."""
        summary = [
            app.applied_rule_info
            for line in self.line_items
            for app in line.applied_rules
        ]
        summary.extend(app.applied_rule_info for app in self.applied_cart_rules)
        return summary

    def reset_one_time_rules(self) -> None:
        self._one_time_cart_rules_applied.clear()
        for line in self.line_items:
            line.reset_one_time_rules()
