"""
POS Pricing Engine — Transport Serialization
==============================================
DiscountResult ↔ plain dict for the HTTP boundary and the till.

Amounts stay Decimal; the JSON encoder at the edge renders them as
strings. A result payload that cannot be trusted degrades to the
zero-discount default rather than failing the sale.
"""

from __future__ import annotations

import copy
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from engines.pricing.result import DiscountResult

logger = logging.getLogger("pos.pricing")

ZERO = Decimal(0)

ZERO_DISCOUNT_RESULT: Dict[str, Any] = {
    "line_items": [],
    "total_item_discount": ZERO,
    "total_cart_discount": ZERO,
    "applied_cart_rules": [],
    "original_subtotal": ZERO,
    "total_discount": ZERO,
    "final_total": ZERO,
    "applied_rules_summary": [],
}

_AMOUNT_FIELDS = (
    "total_item_discount",
    "total_cart_discount",
    "original_subtotal",
    "total_discount",
    "final_total",
)
_LIST_FIELDS = ("line_items", "applied_cart_rules", "applied_rules_summary")


def serialize_discount_result(result: DiscountResult) -> Dict[str, Any]:
    return {
        "line_items": [line.to_dict() for line in result.line_items],
        "total_item_discount": result.total_item_discount,
        "total_cart_discount": result.total_cart_discount,
        "applied_cart_rules": [app.to_dict() for app in result.applied_cart_rules],
        "original_subtotal": result.original_subtotal,
        "total_discount": result.total_discount,
        "final_total": result.final_total,
        "applied_rules_summary": [
            info.to_dict() for info in result.applied_rules_summary()
        ],
    }


def zero_discount_result() -> Dict[str, Any]:
    return copy.deepcopy(ZERO_DISCOUNT_RESULT)


def coerce_discount_result(payload: Any) -> Dict[str, Any]:
    """
    Validate a serialized result.

    Returns a normalized copy (amounts as Decimal), or the zero-discount
    default when the payload is malformed.
    """
    if not isinstance(payload, dict):
        logger.warning("Discount result is not an object; using zero-discount default.")
        return zero_discount_result()

    coerced = zero_discount_result()
    try:
        for name in _AMOUNT_FIELDS:
            raw = payload.get(name, ZERO)
            if raw is None or isinstance(raw, bool):
                raise ValueError(f"{name} is not a number")
            coerced[name] = Decimal(str(raw))
        for name in _LIST_FIELDS:
            raw = payload.get(name, [])
            if not isinstance(raw, list):
                raise ValueError(f"{name} is not a list")
            coerced[name] = list(raw)
    except (ValueError, InvalidOperation) as exc:
        logger.warning("Malformed discount result (%s); using zero-discount default.", exc)
        return zero_discount_result()

    if any(coerced[name] < 0 for name in _AMOUNT_FIELDS):
        logger.warning("Negative amounts in discount result; using zero-discount default.")
        return zero_discount_result()
    return coerced
