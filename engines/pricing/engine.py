"""
POS Pricing Engine — Orchestrator
===================================
Compiles a campaign into an ordered rule list and runs it against a
cart.

RULES (NON-NEGOTIABLE):
- Rule order is fixed: custom → batch → product → buy-get → default → cart
- Exactly one rule per distinct batch id and per distinct product id
- One DiscountResult per process() call, finalized exactly once
- Compiled rule lists are cached per campaign id and never mutated

The rule-set cache is the only state shared between calls. It is
injected, so tests and services control its lifetime.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from core.caching import TTLCache
from core.time.clock import Clock, get_default_clock
from engines.pricing.config import Campaign
from engines.pricing.context import DiscountContext
from engines.pricing.result import DiscountResult
from engines.pricing.rules import (
    BatchSpecificRule,
    BuyXGetYRule,
    CartTotalRule,
    CustomItemDiscountRule,
    DefaultItemRule,
    DiscountRule,
    ProductLevelRule,
    RuleKind,
)

logger = logging.getLogger("pos.pricing")

DEFAULT_RULE_CACHE_TTL_SECONDS = 300
DEFAULT_RULE_CACHE_MAX_SIZE = 50

RuleSet = Tuple[DiscountRule, ...]


# ══════════════════════════════════════════════════════════════
# RULE COMPILATION
# ══════════════════════════════════════════════════════════════

def build_rules(campaign: Campaign) -> RuleSet:
    """Compile a campaign into its precedence-ordered rule list."""
    rules: list[DiscountRule] = [CustomItemDiscountRule()]

    seen_batches = set()
    for config in campaign.batch_configurations:
        if config.product_batch_id in seen_batches:
            logger.debug(
                "Duplicate batch configuration %s for batch %s ignored.",
                config.id, config.product_batch_id,
            )
            continue
        seen_batches.add(config.product_batch_id)
        rules.append(BatchSpecificRule(config, campaign))

    seen_products = set()
    for config in sorted(campaign.product_configurations, key=lambda c: c.priority):
        if config.product_id in seen_products:
            logger.debug(
                "Duplicate product configuration %s for product %s ignored.",
                config.id, config.product_id,
            )
            continue
        seen_products.add(config.product_id)
        rules.append(ProductLevelRule(config, campaign))

    for buy_get in campaign.buy_get_rules:
        rules.append(BuyXGetYRule(buy_get, campaign.name))

    rules.append(DefaultItemRule(campaign))
    rules.append(CartTotalRule(campaign))

    _assert_precedence(rules)
    logger.debug("Built %s rule(s) for campaign %s.", len(rules), campaign.id)
    return tuple(rules)


def _assert_precedence(rules: list) -> None:
    order = [rule.kind.precedence for rule in rules]
    if order != sorted(order):
        raise AssertionError(
            f"Rule list out of precedence order: {[r.kind.value for r in rules]}"
        )
    missing = {kind for kind in RuleKind} - {rule.kind for rule in rules}
    # Strategies keyed by configuration may legitimately be absent.
    missing -= {RuleKind.BATCH, RuleKind.PRODUCT, RuleKind.BUY_GET}
    if missing:
        raise AssertionError(
            f"Rule list missing kinds: {sorted(k.value for k in missing)}"
        )


# ══════════════════════════════════════════════════════════════
# RULE SET CACHE
# ══════════════════════════════════════════════════════════════

class RuleSetCache:
    """
    Compiled rule lists keyed by campaign id.

    Entries live for ttl_seconds; once more than max_size campaigns are
    cached, expired entries are trimmed. invalidate_all() is the only
    invalidation, used whenever any campaign definition changes.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        ttl_seconds: float = DEFAULT_RULE_CACHE_TTL_SECONDS,
        max_size: int = DEFAULT_RULE_CACHE_MAX_SIZE,
    ) -> None:
        self._clock = clock or get_default_clock()
        self._cache = TTLCache(max_size=max_size, default_ttl_seconds=ttl_seconds)

    def get_or_build(
        self,
        campaign: Campaign,
        builder: Callable[[Campaign], RuleSet] = build_rules,
    ) -> RuleSet:
        return self._cache.get_or_create(
            campaign.id, self._clock.now_utc(), lambda: builder(campaign),
        )

    def invalidate_all(self) -> int:
        count = self._cache.clear()
        logger.info("Rule set cache invalidated (%s entries).", count)
        return count

    @property
    def size(self) -> int:
        return self._cache.size

    @property
    def stats(self):
        return self._cache.stats


# ══════════════════════════════════════════════════════════════
# ENGINE
# ══════════════════════════════════════════════════════════════

class DiscountEngine:
    """Runs one campaign's rules against carts."""

    def __init__(self, campaign: Campaign, cache: Optional[RuleSetCache] = None):
        self._campaign = campaign
        if cache is not None:
            self._rules = cache.get_or_build(campaign)
        else:
            self._rules = build_rules(campaign)

    @property
    def campaign(self) -> Campaign:
        return self._campaign

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def process(self, context: DiscountContext) -> DiscountResult:
        result = DiscountResult.for_context(context)
        for rule in self._rules:
            rule.apply(context, result)
        result.finalize()
        logger.debug(
            "Campaign %s: item discount %s, cart discount %s.",
            self._campaign.id, result.total_item_discount, result.total_cart_discount,
        )
        return result
