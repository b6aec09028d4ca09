"""
POS Pricing Engine — Campaign Catalog
=======================================
In-memory lookup of campaigns by id, preloaded with the built-in
campaigns every till offers.

Campaign definitions are owned by the back office; the catalog only
holds what it is given. Adding or replacing a campaign invalidates the
attached rule-set cache, since compiled rules may now be stale.
"""

from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from engines.pricing.config import Campaign, RuleConfig
from engines.pricing.context import DiscountType
from engines.pricing.rules import PRODUCT_DEFAULTS_CAMPAIGN_ID

logger = logging.getLogger("pos.pricing")


# ══════════════════════════════════════════════════════════════
# BUILT-IN CAMPAIGNS
# ══════════════════════════════════════════════════════════════

DEFAULT_DISCOUNTS = Campaign(
    id="promo-default",
    name="Default Discounts",
    description="Standard discounts applied when no specific campaign is chosen.",
    is_default=True,
    is_one_time_per_transaction=True,
    default_line_item_value_rule=RuleConfig(
        name="Default 2% Item Discount",
        discount_type=DiscountType.PERCENTAGE,
        value=Decimal("2"),
        is_enabled=True,
        condition_min=Decimal("0"),
        apply_fixed_once=True,
        description="A default 2% discount on all line items.",
    ),
)

NO_DISCOUNTS = Campaign(
    id="promo-none",
    name="No Discount",
    description="Use this to apply no automatic discounts.",
)

PRODUCT_DEFAULTS = Campaign(
    id=PRODUCT_DEFAULTS_CAMPAIGN_ID,
    name="Product Defaults",
    description="Apply the default discount configured on each product batch.",
)

BUILTIN_CAMPAIGNS = (DEFAULT_DISCOUNTS, NO_DISCOUNTS, PRODUCT_DEFAULTS)


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

class CampaignCatalog:
    """Thread-safe campaign registry."""

    def __init__(
        self,
        campaigns: Optional[Iterable[Campaign]] = None,
        cache=None,
        include_builtins: bool = True,
    ) -> None:
        self._lock = threading.Lock()
        self._campaigns: Dict[str, Campaign] = {}
        self._cache = cache
        if include_builtins:
            for campaign in BUILTIN_CAMPAIGNS:
                self._campaigns[campaign.id] = campaign
        for campaign in campaigns or ():
            self._campaigns[campaign.id] = campaign

    def find_by_id(self, campaign_id: Optional[str]) -> Optional[Campaign]:
        if not campaign_id:
            return None
        with self._lock:
            return self._campaigns.get(campaign_id)

    def add(self, campaign: Campaign) -> None:
        with self._lock:
            replaced = campaign.id in self._campaigns
            self._campaigns[campaign.id] = campaign
        logger.info(
            "Campaign %s %s in catalog.", campaign.id,
            "replaced" if replaced else "added",
        )
        if self._cache is not None:
            self._cache.invalidate_all()

    def all(self) -> List[Campaign]:
        with self._lock:
            return list(self._campaigns.values())

    def __contains__(self, campaign_id: str) -> bool:
        with self._lock:
            return campaign_id in self._campaigns

    def __len__(self) -> int:
        with self._lock:
            return len(self._campaigns)
