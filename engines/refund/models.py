"""
POS Refund Engine — Transaction Records
=========================================
Transaction shapes exchanged with the till and the back office.

Records are immutable. from_dict() accepts the camelCase wire shape
(transactionHeader, transactionLines, paymentDetails, ...); to_dict()
emits the same shape so a refund record can be stored next to the
sale it amends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from engines.pricing.context import DiscountType, to_flag, to_money, to_quantity
from engines.pricing.errors import InvalidPayloadError

TRANSACTION_STATUSES = frozenset({"completed", "refund", "pending"})
PAYMENT_METHODS = frozenset({"cash", "card", "online"})


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidPayloadError(f"Missing required field '{key}'.", field_name=key)
    return data[key]


def _money(data: Dict[str, Any], key: str, default: Any = 0) -> Decimal:
    raw = data.get(key, default)
    try:
        return to_money(default if raw is None else raw)
    except (ValueError, ArithmeticError) as exc:
        raise InvalidPayloadError(f"Invalid amount for '{key}'.", field_name=key) from exc


# ══════════════════════════════════════════════════════════════
# PARTIES / PAYMENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CustomerDetails:
    name: str = ""
    phone: str = ""
    address: str = ""
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CustomerDetails":
        data = data or {}
        return cls(
            name=str(data.get("name") or ""),
            phone=str(data.get("phone") or ""),
            address=str(data.get("address") or ""),
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {"name": self.name, "phone": self.phone, "address": self.address}
        if self.id is not None:
            out["id"] = self.id
        return out


@dataclass(frozen=True)
class PaymentDetails:
    """
    For a refund record paid_amount is the net cash change:
    negative means money back to the customer.
    """

    paid_amount: Decimal
    payment_method: str = "cash"
    outstanding_amount: Decimal = Decimal(0)
    is_installment: bool = False

    def __post_init__(self):
        if self.payment_method not in PAYMENT_METHODS:
            raise ValueError(
                f"payment_method must be one of {sorted(PAYMENT_METHODS)}, "
                f"got '{self.payment_method}'."
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentDetails":
        if not isinstance(data, dict):
            raise InvalidPayloadError("paymentDetails must be an object.")
        try:
            return cls(
                paid_amount=_money(data, "paidAmount"),
                payment_method=str(data.get("paymentMethod") or "cash"),
                outstanding_amount=_money(data, "outstandingAmount"),
                is_installment=bool(data.get("isInstallment", False)),
            )
        except ValueError as exc:
            raise InvalidPayloadError(str(exc), field_name="paymentMethod") from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paidAmount": self.paid_amount,
            "paymentMethod": self.payment_method,
            "outstandingAmount": self.outstanding_amount,
            "isInstallment": self.is_installment,
        }


# ══════════════════════════════════════════════════════════════
# HEADER / LINES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransactionHeader:
    transaction_id: str
    transaction_date: datetime
    subtotal: Decimal
    total_discount_amount: Decimal
    final_total: Decimal
    total_items: int
    total_quantity: int
    status: str
    campaign_id: str
    original_transaction_id: Optional[str] = None
    is_gift_receipt: bool = False

    def __post_init__(self):
        if self.status not in TRANSACTION_STATUSES:
            raise ValueError(
                f"status must be one of {sorted(TRANSACTION_STATUSES)}, got '{self.status}'."
            )
        if self.status == "refund" and not self.original_transaction_id:
            raise ValueError("A refund header must reference the original transaction.")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionHeader":
        if not isinstance(data, dict):
            raise InvalidPayloadError("transactionHeader must be an object.")
        raw_date = _require(data, "transactionDate")
        try:
            transaction_date = (
                raw_date if isinstance(raw_date, datetime)
                else datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
            )
            return cls(
                transaction_id=str(_require(data, "transactionId")),
                transaction_date=transaction_date,
                subtotal=_money(data, "subtotal"),
                total_discount_amount=_money(data, "totalDiscountAmount"),
                final_total=_money(data, "finalTotal"),
                total_items=int(data.get("totalItems") or 0),
                total_quantity=int(data.get("totalQuantity") or 0),
                status=str(data.get("status") or "completed"),
                campaign_id=str(data.get("campaignId") or ""),
                original_transaction_id=data.get("originalTransactionId"),
                is_gift_receipt=bool(data.get("isGiftReceipt", False)),
            )
        except ValueError as exc:
            raise InvalidPayloadError(f"Invalid transaction header: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "transactionId": self.transaction_id,
            "transactionDate": self.transaction_date.isoformat(),
            "subtotal": self.subtotal,
            "totalDiscountAmount": self.total_discount_amount,
            "finalTotal": self.final_total,
            "totalItems": self.total_items,
            "totalQuantity": self.total_quantity,
            "status": self.status,
            "campaignId": self.campaign_id,
            "isGiftReceipt": self.is_gift_receipt,
        }
        if self.original_transaction_id:
            out["originalTransactionId"] = self.original_transaction_id
        return out


@dataclass(frozen=True)
class TransactionLine:
    sale_item_id: str
    product_id: str
    product_name: str
    batch_id: str
    quantity: int
    unit_price: Decimal
    line_total_before_discount: Decimal
    line_discount: Decimal
    line_total_after_discount: Decimal
    batch_number: Optional[str] = None
    custom_discount_value: Optional[Decimal] = None
    custom_discount_type: Optional[DiscountType] = None
    custom_apply_fixed_once: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionLine":
        if not isinstance(data, dict):
            raise InvalidPayloadError("Transaction line must be an object.")
        custom_value = data.get("customDiscountValue")
        custom_type = data.get("customDiscountType")
        try:
            unit_price = _money(data, "unitPrice", data.get("price", 0))
            return cls(
                sale_item_id=str(_require(data, "saleItemId")),
                product_id=str(_require(data, "productId")),
                product_name=str(data.get("productName") or ""),
                batch_id=str(_require(data, "batchId")),
                quantity=to_quantity(_require(data, "quantity")),
                unit_price=unit_price,
                line_total_before_discount=_money(data, "lineTotalBeforeDiscount"),
                line_discount=_money(data, "lineDiscount"),
                line_total_after_discount=_money(data, "lineTotalAfterDiscount"),
                batch_number=data.get("batchNumber"),
                custom_discount_value=(
                    to_money(custom_value) if custom_value is not None else None
                ),
                custom_discount_type=(
                    DiscountType.parse(custom_type) if custom_type else None
                ),
                custom_apply_fixed_once=to_flag(data.get("customApplyFixedOnce")),
            )
        except (ValueError, ArithmeticError) as exc:
            raise InvalidPayloadError(f"Invalid transaction line: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "saleItemId": self.sale_item_id,
            "productId": self.product_id,
            "productName": self.product_name,
            "batchId": self.batch_id,
            "batchNumber": self.batch_number,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "lineTotalBeforeDiscount": self.line_total_before_discount,
            "lineDiscount": self.line_discount,
            "lineTotalAfterDiscount": self.line_total_after_discount,
        }
        if self.custom_discount_value is not None:
            out["customDiscountValue"] = self.custom_discount_value
        if self.custom_discount_type is not None:
            out["customDiscountType"] = self.custom_discount_type.value
        if self.custom_apply_fixed_once is not None:
            out["customApplyFixedOnce"] = self.custom_apply_fixed_once
        return out


# ══════════════════════════════════════════════════════════════
# RECORD
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransactionRecord:
    header: TransactionHeader
    lines: Tuple[TransactionLine, ...]
    payment_details: PaymentDetails
    customer_details: CustomerDetails = field(default_factory=CustomerDetails)
    applied_discounts_log: Tuple[Dict[str, Any], ...] = ()

    def __post_init__(self):
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))
        if not isinstance(self.applied_discounts_log, tuple):
            object.__setattr__(
                self, "applied_discounts_log", tuple(self.applied_discounts_log)
            )

    @property
    def is_refund(self) -> bool:
        return self.header.status == "refund"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionRecord":
        if not isinstance(data, dict):
            raise InvalidPayloadError("Transaction must be an object.")
        lines = _require(data, "transactionLines")
        if not isinstance(lines, list):
            raise InvalidPayloadError(
                "transactionLines must be a list.", field_name="transactionLines",
            )
        return cls(
            header=TransactionHeader.from_dict(_require(data, "transactionHeader")),
            lines=tuple(TransactionLine.from_dict(line) for line in lines),
            payment_details=PaymentDetails.from_dict(_require(data, "paymentDetails")),
            customer_details=CustomerDetails.from_dict(data.get("customerDetails")),
            applied_discounts_log=tuple(data.get("appliedDiscountsLog") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionHeader": self.header.to_dict(),
            "transactionLines": [line.to_dict() for line in self.lines],
            "appliedDiscountsLog": list(self.applied_discounts_log),
            "customerDetails": self.customer_details.to_dict(),
            "paymentDetails": self.payment_details.to_dict(),
        }
