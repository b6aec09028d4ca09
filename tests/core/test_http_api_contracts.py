from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from core.http_api.contracts import (
    CalculateDiscountsHttpRequest,
    HttpApiErrorBody,
    HttpApiResponse,
    RefundHttpRequest,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import error_response, status_for_payload, success_response
from core.http_api.handlers import post_calculate_discounts, post_refund
from core.time.clock import FixedClock
from engines.pricing.campaigns import CampaignCatalog
from engines.pricing.config import Campaign
from engines.pricing.engine import RuleSetCache
from engines.pricing.result import DiscountResult
from engines.pricing.serialization import ZERO_DISCOUNT_RESULT
from engines.pricing.services import DiscountService
from engines.refund.services import RefundService


CLOCK = FixedClock(datetime(2026, 2, 17, 13, 0, tzinfo=timezone.utc))
CART = ({"saleItemId": "s1", "productId": "p1", "id": "b1", "price": 500, "quantity": 2},)


def _dependencies() -> HttpApiDependencies:
    cache = RuleSetCache(clock=CLOCK)
    catalog = CampaignCatalog(cache=cache)
    discount_service = DiscountService(cache=cache)
    return HttpApiDependencies(
        catalog=catalog,
        discount_service=discount_service,
        refund_service=RefundService(catalog, discount_service, CLOCK),
        clock=CLOCK,
    )


class TestContracts:
    def test_calculate_requires_campaign(self):
        with pytest.raises(ValueError, match="campaignId"):
            CalculateDiscountsHttpRequest(cart=CART)

    def test_calculate_requires_tuple_cart(self):
        with pytest.raises(ValueError, match="tuple"):
            CalculateDiscountsHttpRequest(cart=list(CART), campaign_id="promo-default")

    def test_refund_requires_object(self):
        with pytest.raises(ValueError, match="originalTransaction"):
            RefundHttpRequest(original_transaction=[], kept_items=())


class TestEnvelopes:
    def test_success(self):
        assert success_response({"x": 1}) == {"ok": True, "data": {"x": 1}}

    def test_error(self):
        payload = error_response(code="INVALID_REQUEST", message="bad")
        assert payload == {
            "ok": False,
            "error": {"code": "INVALID_REQUEST", "message": "bad", "details": {}},
        }

    def test_error_without_body_is_rejected(self):
        with pytest.raises(ValueError):
            HttpApiResponse(ok=False).to_dict()

    def test_error_body_copies_details(self):
        details = {"field": "cart"}
        body = HttpApiErrorBody(code="X", message="m", details=details).to_dict()
        body["details"]["field"] = "other"
        assert details["field"] == "cart"

    @pytest.mark.parametrize(
        "code,status",
        [
            ("INVALID_REQUEST", 400),
            ("CAMPAIGN_NOT_FOUND", 404),
            ("CAMPAIGN_INACTIVE", 409),
            ("METHOD_NOT_ALLOWED", 405),
            ("HANDLER_EXECUTION_FAILED", 500),
            ("SOMETHING_ELSE", 400),
        ],
    )
    def test_status_mapping(self, code, status):
        assert status_for_payload(error_response(code=code, message="m")) == status

    def test_success_status(self):
        assert status_for_payload(success_response(None)) == 200


class TestHandlers:
    def test_calculate_by_campaign_id(self):
        payload = post_calculate_discounts(
            CalculateDiscountsHttpRequest(cart=CART, campaign_id="promo-default"),
            _dependencies(),
        )
        assert payload["ok"] is True
        assert payload["data"]["total_item_discount"] == Decimal("20")

    def test_calculate_unknown_campaign(self):
        payload = post_calculate_discounts(
            CalculateDiscountsHttpRequest(cart=CART, campaign_id="nope"),
            _dependencies(),
        )
        assert payload["error"]["code"] == "CAMPAIGN_NOT_FOUND"
        assert payload["error"]["details"] == {"campaign_id": "nope"}

    def test_calculate_bad_inline_campaign(self):
        payload = post_calculate_discounts(
            CalculateDiscountsHttpRequest(cart=CART, active_campaign={"name": "no id"}),
            _dependencies(),
        )
        assert payload["error"]["code"] == "INVALID_REQUEST"
        assert payload["error"]["details"] == {"field": "id"}

    def test_unexpected_failure_is_enveloped(self):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        deps = _dependencies()
        broken = HttpApiDependencies(
            catalog=deps.catalog,
            discount_service=SimpleNamespace(calculate_discounts=explode),
            refund_service=deps.refund_service,
            clock=CLOCK,
        )
        payload = post_calculate_discounts(
            CalculateDiscountsHttpRequest(cart=CART, campaign_id="promo-default"),
            broken,
        )
        assert payload["error"]["code"] == "HANDLER_EXECUTION_FAILED"
        assert payload["error"]["details"] == {"error_type": "RuntimeError"}

    def test_refund_failure_outcome(self):
        payload = post_refund(
            RefundHttpRequest(original_transaction={"transactionHeader": {}}, kept_items=()),
            _dependencies(),
        )
        assert payload["ok"] is False
        assert payload["error"]["code"] == "INVALID_REQUEST"


class TestCampaignValidity:
    def _inline(self, **window):
        campaign = {
            "id": "promo-window",
            "name": "Window Sale",
            "defaultLineItemValueRuleJson": {
                "name": "5% off", "type": "percentage", "value": 5, "isEnabled": True,
            },
        }
        campaign.update(window)
        return CalculateDiscountsHttpRequest(cart=CART, active_campaign=campaign)

    def test_live_inline_campaign(self):
        payload = post_calculate_discounts(
            self._inline(validFrom="2026-02-01T00:00:00Z", validTo="2026-02-28T23:59:59Z"),
            _dependencies(),
        )
        assert payload["ok"] is True
        assert payload["data"]["total_item_discount"] == Decimal("50")

    def test_expired_inline_campaign(self):
        payload = post_calculate_discounts(
            self._inline(validTo="2026-01-31T23:59:59Z"), _dependencies(),
        )
        assert payload["error"]["code"] == "CAMPAIGN_INACTIVE"
        assert payload["error"]["details"] == {"campaign_id": "promo-window"}
        assert status_for_payload(payload) == 409

    def test_catalog_campaign_not_started_yet(self):
        deps = _dependencies()
        deps.catalog.add(Campaign(
            id="promo-spring",
            name="Spring",
            valid_from=datetime(2026, 3, 1, tzinfo=timezone.utc),
        ))
        payload = post_calculate_discounts(
            CalculateDiscountsHttpRequest(cart=CART, campaign_id="promo-spring"), deps,
        )
        assert payload["error"]["code"] == "CAMPAIGN_INACTIVE"

    def test_switched_off_campaign(self):
        payload = post_calculate_discounts(self._inline(isActive=False), _dependencies())
        assert payload["error"]["code"] == "CAMPAIGN_INACTIVE"


class TestResultGuard:
    def test_negative_totals_degrade_to_zero_discount(self):
        broken = DiscountResult()
        broken.total_cart_discount = Decimal("-5")

        deps = _dependencies()
        payload = post_calculate_discounts(
            CalculateDiscountsHttpRequest(cart=CART, campaign_id="promo-default"),
            HttpApiDependencies(
                catalog=deps.catalog,
                discount_service=SimpleNamespace(
                    calculate_discounts=lambda *args, **kwargs: broken,
                ),
                refund_service=deps.refund_service,
                clock=CLOCK,
            ),
        )
        assert payload == {"ok": True, "data": ZERO_DISCOUNT_RESULT}
