"""
POS HTTP API - Dependencies
===========================
Injected services for handler wiring.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.time.clock import Clock
from engines.pricing.campaigns import CampaignCatalog
from engines.pricing.services import DiscountService
from engines.refund.services import RefundService


@dataclass(frozen=True)
class HttpApiDependencies:
    catalog: CampaignCatalog
    discount_service: DiscountService
    refund_service: RefundService
    clock: Clock
