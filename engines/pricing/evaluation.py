"""
POS Pricing Engine — Rule Evaluation Primitives
=================================================
Pure functions. No side effects, no clock, no shared state.

RULES (NON-NEGOTIABLE):
- The activation window is re-checked on every call
- Percentages are taken from the pre-discount line total, never compounded
- A single rule never yields more than the line total, nor less than zero
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from engines.pricing.config import RuleConfig, SlotState, slot_state
from engines.pricing.context import DiscountType

logger = logging.getLogger("pos.pricing")

ZERO = Decimal(0)
HUNDRED = Decimal(100)


# ══════════════════════════════════════════════════════════════
# EVALUATION
# ══════════════════════════════════════════════════════════════

def evaluate_rule(
    rule_config: Optional[RuleConfig],
    unit_price: Decimal,
    quantity: int,
    line_total: Decimal,
    condition_value: Optional[Decimal] = None,
) -> Decimal:
    """
    Turn one rule configuration plus one line's numbers into a discount.

    condition_value is what the activation window is tested against:
    quantity for quantity-gated rules, unit price for price-gated rules.
    When omitted the line total is tested.
    """
    if slot_state(rule_config) is not SlotState.ENABLED:
        return ZERO

    tested = line_total if condition_value is None else Decimal(condition_value)
    lower = rule_config.condition_min if rule_config.condition_min is not None else ZERO
    upper = rule_config.condition_max

    if tested < lower or (upper is not None and tested > upper):
        logger.debug(
            "Rule '%s' not active: %s outside [%s, %s].",
            rule_config.name, tested, lower, "inf" if upper is None else upper,
        )
        return ZERO

    if rule_config.discount_type is DiscountType.FIXED:
        if rule_config.apply_fixed_once:
            amount = rule_config.value
        else:
            amount = rule_config.value * quantity
    else:
        amount = line_total * (rule_config.value / HUNDRED)

    final = max(ZERO, min(amount, line_total))
    logger.debug(
        "Rule '%s' (%s %s) computed %s on line total %s.",
        rule_config.name, rule_config.discount_type.value,
        rule_config.value, final, line_total,
    )
    return final


# ══════════════════════════════════════════════════════════════
# IDENTIFIERS / ONE-TIME RESOLUTION
# ══════════════════════════════════════════════════════════════

def generate_rule_id(
    prefix: str,
    config_id: str,
    rule_type: str,
    product_id: Optional[str] = None,
    batch_id: Optional[str] = None,
) -> str:
    """Stable id used on applied-rule records and as the one-time key."""
    parts = [prefix, config_id, rule_type]
    if product_id:
        parts.append(product_id)
    if batch_id:
        parts.append(batch_id)
    return "-".join(parts)


def is_one_time_rule(
    rule_config: Optional[RuleConfig],
    campaign_is_one_time: bool = False,
) -> bool:
    """Rule-level apply_fixed_once wins when set; otherwise the campaign flag."""
    if rule_config is None:
        return False
    if rule_config.apply_fixed_once is not None:
        return bool(rule_config.apply_fixed_once)
    return campaign_is_one_time


# ══════════════════════════════════════════════════════════════
# VALIDATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RuleValidation:
    is_valid: bool
    errors: Tuple[str, ...] = ()


def validate_rule_config(rule_config: Optional[RuleConfig]) -> RuleValidation:
    """
    Check a configuration for the mistakes that would make it misbehave.

    The strategies run this before evaluating: an invalid config is logged and
    skipped, never raised.
    """
    if rule_config is None:
        return RuleValidation(False, ("Rule configuration is missing.",))

    errors = []
    if not rule_config.name or not rule_config.name.strip():
        errors.append("Rule name is required.")
    if rule_config.value < 0:
        errors.append("Discount value cannot be negative.")
    if rule_config.discount_type is DiscountType.PERCENTAGE and rule_config.value > HUNDRED:
        errors.append("Percentage discount cannot exceed 100%.")
    if rule_config.condition_min is not None and rule_config.condition_min < 0:
        errors.append("Minimum condition cannot be negative.")
    if (
        rule_config.condition_min is not None
        and rule_config.condition_max is not None
        and rule_config.condition_max < rule_config.condition_min
    ):
        errors.append("Maximum condition cannot be less than minimum condition.")

    return RuleValidation(not errors, tuple(errors))


# ══════════════════════════════════════════════════════════════
# DISPLAY HELPERS
# ══════════════════════════════════════════════════════════════

def calculate_effective_discount_rate(
    original_amount: Decimal, discount_amount: Decimal,
) -> Decimal:
    """Discount as a percentage of the original amount (0 when nothing to discount)."""
    if original_amount <= 0:
        return ZERO
    return Decimal(discount_amount) / Decimal(original_amount) * HUNDRED


def format_discount_amount(amount: Decimal, currency: str = "LKR") -> str:
    return f"{currency} {Decimal(amount):.2f}"


def format_discount_percentage(percentage: Decimal) -> str:
    return f"{Decimal(percentage):.1f}%"
