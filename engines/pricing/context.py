"""
POS Pricing Engine — Discount Context
=======================================
Input contract for one engine run: the cart lines and optional
customer data. Created fresh per calculation; rules only read it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple


class DiscountType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"

    @classmethod
    def parse(cls, raw: Any) -> "DiscountType":
        if isinstance(raw, cls):
            return raw
        value = str(raw).strip().lower()
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(f"Unknown discount type: {raw!r}")


def to_money(value: Any) -> Decimal:
    """Coerce a wire number into Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    return Decimal(str(value))


def to_quantity(value: Any) -> int:
    """Coerce a wire quantity to int; fractional units are rejected."""
    if isinstance(value, bool):
        raise ValueError(f"Not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value))
    except ArithmeticError as exc:
        raise ValueError(f"Not a quantity: {value!r}") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"Quantity must be a whole number, got {value!r}.")
    return int(number)


_TRUE_FLAGS = frozenset({"true", "1", "yes"})
_FALSE_FLAGS = frozenset({"false", "0", "no"})


def to_flag(value: Any) -> Optional[bool]:
    """Coerce a wire boolean; None stays None (unset)."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    raise ValueError(f"Not a boolean flag: {value!r}")


# ══════════════════════════════════════════════════════════════
# LINE ITEM
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LineItem:
    """
    One cart row: one stock batch at one quantity.

    custom_* fields carry a cashier-entered override. original_quantity
    is set on refund carts so one-time manual discounts can be pro-rated.
    batch_discount_* carry the default discount stored on the batch,
    used by the product-defaults campaign.
    """

    line_id: str
    product_id: str
    batch_id: str
    unit_price: Decimal
    quantity: int
    custom_discount_type: Optional[DiscountType] = None
    custom_discount_value: Optional[Decimal] = None
    custom_apply_fixed_once: Optional[bool] = None
    original_quantity: Optional[int] = None
    batch_number: Optional[str] = None
    batch_discount_type: Optional[DiscountType] = None
    batch_discount_value: Optional[Decimal] = None

    def __post_init__(self):
        if not self.line_id:
            raise ValueError("line_id must be non-empty.")
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        if not self.batch_id:
            raise ValueError("batch_id must be non-empty.")
        if not isinstance(self.quantity, int) or self.quantity < 0:
            raise ValueError("quantity must be a non-negative integer.")
        object.__setattr__(self, "unit_price", to_money(self.unit_price))
        if self.unit_price < 0:
            raise ValueError("unit_price cannot be negative.")
        if self.custom_discount_value is not None:
            object.__setattr__(
                self, "custom_discount_value", to_money(self.custom_discount_value)
            )
        if self.batch_discount_value is not None:
            object.__setattr__(
                self, "batch_discount_value", to_money(self.batch_discount_value)
            )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def has_custom_discount(self) -> bool:
        return (
            self.custom_discount_value is not None
            and self.custom_discount_value > 0
        )

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """
        Build from the POS cart wire shape.

        Accepts the sale-item keys the storefront sends
        (saleItemId / productId / id for the batch / price).
        """
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        custom_type = pick("customDiscountType", "custom_discount_type")
        batch_type = pick("discountType", "batch_discount_type")
        original_qty = pick("originalQuantity", "original_quantity")
        return cls(
            line_id=str(pick("saleItemId", "lineId", "line_id", default="")),
            product_id=str(pick("productId", "product_id", default="")),
            batch_id=str(pick("batchId", "batch_id", "id", default="")),
            unit_price=to_money(pick("price", "unitPrice", "unit_price", default=0)),
            quantity=to_quantity(pick("quantity", default=0)),
            custom_discount_type=(
                DiscountType.parse(custom_type) if custom_type else None
            ),
            custom_discount_value=pick("customDiscountValue", "custom_discount_value"),
            custom_apply_fixed_once=to_flag(pick(
                "customApplyFixedOnce", "custom_apply_fixed_once"
            )),
            original_quantity=(
                to_quantity(original_qty) if original_qty is not None else None
            ),
            batch_number=pick("batchNumber", "batch_number"),
            batch_discount_type=_batch_discount_type(batch_type),
            batch_discount_value=pick("discount", "batch_discount_value"),
        )


# ══════════════════════════════════════════════════════════════
# CONTEXT
# ══════════════════════════════════════════════════════════════

def _batch_discount_type(raw: Any) -> Optional[DiscountType]:
    # Batches store PERCENTAGE or an amount marker; anything else is fixed.
    if not raw:
        return None
    if str(raw).strip().upper() == "PERCENTAGE":
        return DiscountType.PERCENTAGE
    return DiscountType.FIXED


@dataclass(frozen=True)
class CustomerInfo:
    """Reserved for customer-specific rule types."""
    customer_id: str
    name: str = ""
    membership_level: Optional[str] = None


@dataclass(frozen=True)
class DiscountContext:
    """Full input of one engine run. Line order is preserved."""
    items: Tuple[LineItem, ...] = field(default_factory=tuple)
    customer: Optional[CustomerInfo] = None

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)
