"""
Tests — Discount Engine Orchestration
=======================================
Precedence, determinism and the compiled rule-set cache.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from decimal import Decimal

from core.time.clock import FixedClock
from engines.pricing.campaigns import DEFAULT_DISCOUNTS
from engines.pricing.config import (
    BatchDiscountConfiguration,
    BuyGetRule,
    Campaign,
    ProductDiscountConfiguration,
    RuleConfig,
)
from engines.pricing.context import DiscountContext, DiscountType, LineItem
from engines.pricing.engine import (
    DEFAULT_RULE_CACHE_MAX_SIZE,
    DEFAULT_RULE_CACHE_TTL_SECONDS,
    DiscountEngine,
    RuleSetCache,
    build_rules,
)
from engines.pricing.rules import RuleKind
from engines.pricing.serialization import serialize_discount_result


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _line(line_id, product_id="p1", batch_id="b1", price="1000", quantity=1, **kwargs):
    return LineItem(
        line_id=line_id,
        product_id=product_id,
        batch_id=batch_id,
        unit_price=Decimal(price),
        quantity=quantity,
        **kwargs,
    )


def _pct(value, **kwargs) -> RuleConfig:
    kwargs.setdefault("name", f"{value}% off")
    return RuleConfig(discount_type=DiscountType.PERCENTAGE, value=Decimal(value), **kwargs)


def _full_campaign() -> Campaign:
    return Campaign(
        id="camp-full",
        name="Full Campaign",
        batch_configurations=(
            BatchDiscountConfiguration(
                id="bc1", product_batch_id="b1", line_item_value_rule=_pct("10"),
            ),
            BatchDiscountConfiguration(
                id="bc2", product_batch_id="b1", line_item_value_rule=_pct("90"),
            ),
        ),
        product_configurations=(
            ProductDiscountConfiguration(
                id="pc-late", product_id="p1", priority=2,
                line_item_value_rule=_pct("50"),
            ),
            ProductDiscountConfiguration(
                id="pc-early", product_id="p1", priority=1,
                line_item_value_rule=_pct("20"),
            ),
        ),
        buy_get_rules=(
            BuyGetRule(
                id="bg1", name="Buy p1 get p2",
                buy_product_id="p1", buy_quantity=1,
                get_product_id="p2", get_quantity=1,
            ),
        ),
        default_line_item_value_rule=_pct("2", apply_fixed_once=True),
        global_cart_price_rule=_pct("5", condition_min=100),
    )


class TestBuildRules:
    def test_order_and_dedupe(self):
        rules = build_rules(_full_campaign())
        kinds = [rule.kind for rule in rules]
        assert kinds == [
            RuleKind.CUSTOM,
            RuleKind.BATCH,
            RuleKind.PRODUCT,
            RuleKind.BUY_GET,
            RuleKind.DEFAULT_ITEM,
            RuleKind.CART_TOTAL,
        ]

    def test_first_batch_configuration_wins(self):
        rules = build_rules(_full_campaign())
        batch_rule = rules[1]
        assert batch_rule.get_id() == "batch-bc1-b1"

    def test_lowest_priority_value_wins_for_product(self):
        rules = build_rules(_full_campaign())
        assert rules[2].get_id() == "product-pc-early-p1"

    def test_minimal_campaign(self):
        kinds = [r.kind for r in build_rules(Campaign(id="c", name="Bare"))]
        assert kinds == [RuleKind.CUSTOM, RuleKind.DEFAULT_ITEM, RuleKind.CART_TOTAL]


class TestPrecedence:
    def test_custom_blocks_other_item_rules(self):
        engine = DiscountEngine(_full_campaign())
        result = engine.process(DiscountContext(items=(
            _line("L1", custom_discount_type=DiscountType.FIXED,
                  custom_discount_value=Decimal("50"), custom_apply_fixed_once=True),
        )))
        line = result.get_line_item("L1")
        assert line.total_discount == Decimal("50")
        assert [a.applied_rule_info.rule_type for a in line.applied_rules] == [
            "custom_item_discount"
        ]

    def test_batch_beats_product_beats_default(self):
        engine = DiscountEngine(_full_campaign())
        result = engine.process(DiscountContext(items=(
            _line("L1", batch_id="b1"),
            _line("L2", batch_id="b2"),
            _line("L3", product_id="p3", batch_id="b3"),
        )))
        assert result.get_line_item("L1").total_discount == Decimal("100")
        assert result.get_line_item("L2").total_discount == Decimal("200")
        assert result.get_line_item("L3").total_discount == Decimal("20")

    def test_buy_get_target_then_cart(self):
        engine = DiscountEngine(_full_campaign())
        result = engine.process(DiscountContext(items=(
            _line("L1", batch_id="b1"),
            _line("L2", product_id="p2", batch_id="bp2", price="300"),
        )))
        assert result.get_line_item("L1").total_discount == Decimal("100")
        assert result.get_line_item("L2").total_discount == Decimal("300")
        # subtotal after items: 900 + 0
        assert result.total_cart_discount == Decimal("45")
        assert result.final_total == Decimal("855")

    def test_result_invariants(self):
        engine = DiscountEngine(_full_campaign())
        result = engine.process(DiscountContext(items=(
            _line("L1", quantity=2),
            _line("L2", product_id="p2", batch_id="bp2", price="10", quantity=5),
            _line("L3", product_id="p3", batch_id="b3", price="0.99", quantity=7),
        )))
        for line in result.line_items:
            assert 0 <= line.total_discount <= line.original_price * line.quantity
        assert 0 <= result.total_cart_discount <= sum(li.net_price for li in result.line_items)
        assert result.final_total == result.original_subtotal - (
            result.total_item_discount + result.total_cart_discount
        )


class TestDeterminism:
    def test_repeated_runs_are_identical(self):
        context = DiscountContext(items=(
            _line("L1", quantity=3),
            _line("L2", product_id="p2", batch_id="bp2", price="300"),
        ))
        engine = DiscountEngine(_full_campaign())
        first = serialize_discount_result(engine.process(context))
        second = serialize_discount_result(engine.process(context))
        assert first == second

    def test_default_campaign_two_percent(self):
        result = DiscountEngine(DEFAULT_DISCOUNTS).process(
            DiscountContext(items=(_line("L1", quantity=3),))
        )
        assert result.total_item_discount == Decimal("60")
        assert result.final_total == Decimal("2940")


class TestRuleSetCache:
    def test_defaults(self):
        assert DEFAULT_RULE_CACHE_TTL_SECONDS == 300
        assert DEFAULT_RULE_CACHE_MAX_SIZE == 50

    def test_builds_once_per_campaign_within_ttl(self):
        clock = FixedClock(T0)
        cache = RuleSetCache(clock=clock)
        calls = []

        def builder(campaign):
            calls.append(campaign.id)
            return build_rules(campaign)

        campaign = _full_campaign()
        first = cache.get_or_build(campaign, builder)
        clock.advance(299)
        second = cache.get_or_build(campaign, builder)
        assert first is second
        assert calls == ["camp-full"]

    def test_concurrent_sessions_share_one_build(self):
        cache = RuleSetCache(clock=FixedClock(T0))
        campaign = _full_campaign()
        calls = []
        seen = []
        start = threading.Barrier(8)

        def builder(c):
            calls.append(c.id)
            time.sleep(0.01)
            return build_rules(c)

        def session():
            start.wait()
            seen.append(cache.get_or_build(campaign, builder))

        threads = [threading.Thread(target=session) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert calls == ["camp-full"]
        assert len(seen) == 8
        assert all(rules is seen[0] for rules in seen)

    def test_rebuilds_after_ttl(self):
        clock = FixedClock(T0)
        cache = RuleSetCache(clock=clock)
        campaign = _full_campaign()
        first = cache.get_or_build(campaign)
        clock.advance(301)
        assert cache.get_or_build(campaign) is not first

    def test_invalidate_all(self):
        cache = RuleSetCache(clock=FixedClock(T0))
        cache.get_or_build(_full_campaign())
        cache.get_or_build(DEFAULT_DISCOUNTS)
        assert cache.size == 2
        assert cache.invalidate_all() == 2
        assert cache.size == 0

    def test_engine_uses_injected_cache(self):
        cache = RuleSetCache(clock=FixedClock(T0))
        campaign = _full_campaign()
        a = DiscountEngine(campaign, cache=cache)
        b = DiscountEngine(campaign, cache=cache)
        assert a.rules is b.rules
        assert cache.size == 1
