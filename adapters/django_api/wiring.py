"""
POS Django Adapter Wiring
=========================
Constructs HttpApiDependencies once per process.

This module is adapter-only glue:
- no engine contract changes
- cache tunables come from settings.POS_PRICING
- the campaign catalog is in-memory, preloaded with the built-ins
"""

from __future__ import annotations

import threading
from typing import Any

from django.conf import settings

from core.http_api.dependencies import HttpApiDependencies
from core.time.clock import SystemClock
from engines.pricing.campaigns import CampaignCatalog
from engines.pricing.engine import (
    DEFAULT_RULE_CACHE_MAX_SIZE,
    DEFAULT_RULE_CACHE_TTL_SECONDS,
    RuleSetCache,
)
from engines.pricing.services import DiscountService
from engines.refund.services import RefundService


_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: HttpApiDependencies | None = None


def _pricing_settings() -> dict[str, Any]:
    return dict(getattr(settings, "POS_PRICING", {}) or {})


def _build() -> HttpApiDependencies:
    options = _pricing_settings()
    clock = SystemClock()
    cache = RuleSetCache(
        clock=clock,
        ttl_seconds=options.get("RULE_CACHE_TTL_SECONDS", DEFAULT_RULE_CACHE_TTL_SECONDS),
        max_size=options.get("RULE_CACHE_MAX_SIZE", DEFAULT_RULE_CACHE_MAX_SIZE),
    )
    catalog = CampaignCatalog(cache=cache)
    discount_service = DiscountService(cache=cache)
    return HttpApiDependencies(
        catalog=catalog,
        discount_service=discount_service,
        refund_service=RefundService(catalog, discount_service, clock),
        clock=clock,
    )


def build_dependencies() -> HttpApiDependencies:
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _build()
        return _DEPENDENCIES


def reset_dependencies() -> None:
    """Drop the process-wide wiring (tests, settings changes)."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None
