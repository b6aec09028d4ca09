"""
POS Pricing Engine — Application Service
==========================================
Entry point the till and the refund flow call. Turns a cart plus the
active campaign into a finalized DiscountResult.

Owns the rule-set cache for its lifetime; pass one in to share it.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

from engines.pricing.config import Campaign
from engines.pricing.context import CustomerInfo, DiscountContext, LineItem
from engines.pricing.engine import DiscountEngine, RuleSetCache
from engines.pricing.errors import InvalidPayloadError
from engines.pricing.result import DiscountResult

logger = logging.getLogger("pos.pricing")

CartItem = Union[LineItem, dict]


def _to_line_item(item: CartItem) -> LineItem:
    if isinstance(item, LineItem):
        return item
    if isinstance(item, dict):
        try:
            return LineItem.from_dict(item)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise InvalidPayloadError(f"Invalid cart item: {exc}") from exc
    raise InvalidPayloadError(f"Unsupported cart item: {type(item).__name__}")


def _to_campaign(campaign: Union[Campaign, dict, None]) -> Optional[Campaign]:
    if campaign is None or isinstance(campaign, Campaign):
        return campaign
    return Campaign.from_dict(campaign)


class DiscountService:
    """Calculates discounts for a cart under one campaign."""

    def __init__(self, cache: Optional[RuleSetCache] = None):
        self._cache = cache if cache is not None else RuleSetCache()

    @property
    def cache(self) -> RuleSetCache:
        return self._cache

    def calculate_discounts(
        self,
        cart_items: Iterable[CartItem],
        active_campaign: Union[Campaign, dict, None],
        customer: Optional[CustomerInfo] = None,
    ) -> DiscountResult:
        campaign = _to_campaign(active_campaign)
        items = tuple(_to_line_item(item) for item in cart_items or ())

        if campaign is None or not items:
            logger.debug("No campaign or empty cart; returning empty discount result.")
            return DiscountResult.empty()

        engine = DiscountEngine(campaign, cache=self._cache)
        return engine.process(DiscountContext(items=items, customer=customer))

    def invalidate_campaigns(self) -> int:
        return self._cache.invalidate_all()


# ══════════════════════════════════════════════════════════════
# MODULE-LEVEL CONVENIENCE
# ══════════════════════════════════════════════════════════════

_default_service = DiscountService()


def get_default_service() -> DiscountService:
    return _default_service


def calculate_discounts(
    cart_items: Iterable[CartItem],
    active_campaign: Any,
) -> DiscountResult:
    return _default_service.calculate_discounts(cart_items, active_campaign)


def invalidate_campaigns() -> int:
    """Drop every compiled rule set; call after any campaign definition changes."""
    return _default_service.invalidate_campaigns()
