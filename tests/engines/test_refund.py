"""
Tests — Refund Recomputation
==============================
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.time.clock import FixedClock
from engines.pricing.campaigns import CampaignCatalog
from engines.pricing.config import Campaign, RuleConfig
from engines.pricing.context import DiscountType
from engines.pricing.engine import RuleSetCache
from engines.pricing.errors import CampaignNotFoundError, InvalidPayloadError
from engines.pricing.services import DiscountService
from engines.refund.models import TransactionRecord
from engines.refund.services import (
    RefundOutcome,
    RefundService,
    transaction_lines_to_line_items,
)


T0 = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def _original(paid="2940", campaign_id="promo-default", lines=None) -> dict:
    return {
        "transactionHeader": {
            "transactionId": "txn-1001",
            "transactionDate": "2024-12-30T10:15:00Z",
            "subtotal": 3000,
            "totalDiscountAmount": 60,
            "finalTotal": 2940,
            "totalItems": 1,
            "totalQuantity": 3,
            "status": "completed",
            "campaignId": campaign_id,
            "isGiftReceipt": False,
        },
        "transactionLines": lines or [
            {
                "saleItemId": "s1",
                "productId": "p1",
                "productName": "Basmati Rice 5kg",
                "batchId": "b1",
                "batchNumber": "B-2024-07",
                "quantity": 3,
                "unitPrice": 1000,
                "lineTotalBeforeDiscount": 3000,
                "lineDiscount": 60,
                "lineTotalAfterDiscount": 2940,
            }
        ],
        "appliedDiscountsLog": [],
        "customerDetails": {"name": "Nimal", "phone": "0771234567", "address": ""},
        "paymentDetails": {
            "paidAmount": paid,
            "paymentMethod": "card",
            "outstandingAmount": 0,
            "isInstallment": False,
        },
    }


def _service() -> RefundService:
    cache = RuleSetCache(clock=FixedClock(T0))
    return RefundService(
        CampaignCatalog(cache=cache),
        DiscountService(cache=cache),
        FixedClock(T0),
    )


def _kept(original: dict, quantity: int):
    record = TransactionRecord.from_dict(original)
    items = transaction_lines_to_line_items(record.lines)
    return [dataclasses.replace(items[0], quantity=quantity)]


class TestLineConversion:
    def test_original_quantity_is_pinned(self):
        record = TransactionRecord.from_dict(_original())
        (item,) = transaction_lines_to_line_items(record.lines)
        assert item.line_id == "s1"
        assert item.quantity == 3
        assert item.original_quantity == 3
        assert item.unit_price == Decimal("1000")
        assert item.batch_number == "B-2024-07"


class TestRefundRecomputation:
    def test_partial_return_refunds_difference(self):
        original = _original()
        outcome = _service().process_refund(original, _kept(original, 1))

        assert outcome.ok
        record = outcome.transaction
        assert record.header.final_total == Decimal("980")
        assert record.payment_details.paid_amount == Decimal("-1960")
        assert record.payment_details.outstanding_amount == 0
        assert record.payment_details.is_installment is False
        assert record.payment_details.payment_method == "card"

    def test_record_metadata(self):
        original = _original()
        record = _service().build_refund_transaction(original, _kept(original, 1))
        header = record.header
        assert header.status == "refund"
        assert header.original_transaction_id == "txn-1001"
        assert header.campaign_id == "promo-default"
        assert header.transaction_id == "refund-1735689600000"
        assert header.transaction_date == T0
        assert header.is_gift_receipt is False
        assert record.customer_details.name == "Nimal"
        assert record.lines[0].product_name == "Basmati Rice 5kg"
        assert record.lines[0].line_discount == Decimal("20")
        assert record.applied_discounts_log[0]["source_rule_name"] == (
            "Default 2% Item Discount"
        )

    def test_keeping_everything_moves_no_cash(self):
        original = _original()
        record = _service().build_refund_transaction(original, _kept(original, 3))
        assert record.payment_details.paid_amount == 0

    def test_underpaid_original_gives_positive_change(self):
        original = _original(paid="2000")
        record = _service().build_refund_transaction(original, _kept(original, 3))
        assert record.payment_details.paid_amount == Decimal("940")

    def test_explicit_campaign_overrides_header(self):
        original = _original()
        record = _service().build_refund_transaction(
            original, _kept(original, 1), campaign_id="promo-none",
        )
        assert record.header.final_total == Decimal("1000")
        assert record.payment_details.paid_amount == Decimal("-1940")

    def test_manual_fixed_discount_is_pro_rated(self):
        lines = [{
            "saleItemId": "s1",
            "productId": "p1",
            "productName": "Kettle",
            "batchId": "b1",
            "quantity": 3,
            "unitPrice": 1000,
            "lineTotalBeforeDiscount": 3000,
            "lineDiscount": 300,
            "lineTotalAfterDiscount": 2700,
            "customDiscountType": "fixed",
            "customDiscountValue": 300,
            "customApplyFixedOnce": True,
        }]
        original = _original(paid="2700", lines=lines)
        record = _service().build_refund_transaction(original, _kept(original, 1))
        assert record.lines[0].line_discount == Decimal("100")
        assert record.header.final_total == Decimal("900")
        assert record.payment_details.paid_amount == Decimal("-1800")

    def test_campaign_expired_since_sale_still_prices_refund(self):
        december = Campaign(
            id="promo-dec",
            name="December Sale",
            valid_from=datetime(2024, 12, 1, tzinfo=timezone.utc),
            valid_to=datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
            default_line_item_value_rule=RuleConfig(
                name="10% off", discount_type=DiscountType.PERCENTAGE, value=Decimal("10"),
            ),
        )
        cache = RuleSetCache(clock=FixedClock(T0))
        service = RefundService(
            CampaignCatalog([december], cache=cache),
            DiscountService(cache=cache),
            FixedClock(T0),
        )
        assert not december.is_active_at(T0)

        original = _original(paid="2700", campaign_id="promo-dec")
        outcome = service.process_refund(original, _kept(original, 1))
        assert outcome.ok
        assert outcome.transaction.header.final_total == Decimal("900")
        assert outcome.transaction.payment_details.paid_amount == Decimal("-1800")

    def test_refund_is_deterministic(self):
        original = _original()
        kept = _kept(original, 2)
        service = _service()
        first = service.build_refund_transaction(original, kept).to_dict()
        second = service.build_refund_transaction(original, kept).to_dict()
        assert first == second


class TestRefundFailures:
    def test_unknown_campaign_is_refused(self):
        original = _original(campaign_id="promo-retired")
        with pytest.raises(CampaignNotFoundError):
            _service().build_refund_transaction(original, _kept(original, 1))

    def test_unknown_campaign_outcome(self):
        original = _original(campaign_id="promo-retired")
        outcome = _service().process_refund(original, _kept(original, 1))
        assert not outcome.ok
        assert outcome.transaction is None
        assert outcome.error_code == "CAMPAIGN_NOT_FOUND"
        assert "promo-retired" in outcome.message

    def test_malformed_original(self):
        outcome = _service().process_refund({"transactionHeader": {}}, [])
        assert not outcome.ok
        assert outcome.error_code == "INVALID_REQUEST"

    def test_malformed_kept_item(self):
        with pytest.raises(InvalidPayloadError):
            _service().build_refund_transaction(_original(), [{"quantity": 1}])


class TestRefundOutcome:
    def test_success_requires_transaction(self):
        with pytest.raises(ValueError):
            RefundOutcome(ok=True)

    def test_failure_requires_code(self):
        with pytest.raises(ValueError):
            RefundOutcome(ok=False)


class TestTransactionRecordRoundTrip:
    def test_to_dict_uses_wire_keys(self):
        data = TransactionRecord.from_dict(_original()).to_dict()
        assert data["transactionHeader"]["transactionId"] == "txn-1001"
        assert data["transactionHeader"]["status"] == "completed"
        assert "originalTransactionId" not in data["transactionHeader"]
        assert data["paymentDetails"]["paidAmount"] == Decimal("2940")
        assert data["transactionLines"][0]["batchNumber"] == "B-2024-07"

    def test_refund_header_requires_original_id(self):
        original = _original()
        original["transactionHeader"]["status"] = "refund"
        with pytest.raises(InvalidPayloadError):
            TransactionRecord.from_dict(original)
