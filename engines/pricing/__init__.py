"""
POS Pricing Engine
===================
Deterministic line and cart discount calculation for the till.

Public surface: build a cart of LineItems, pick a Campaign, call
calculate_discounts(). Everything else is exported for the refund flow,
the HTTP adapter and tests.
"""

from engines.pricing.campaigns import (
    BUILTIN_CAMPAIGNS,
    DEFAULT_DISCOUNTS,
    NO_DISCOUNTS,
    PRODUCT_DEFAULTS,
    CampaignCatalog,
)
from engines.pricing.config import (
    BatchDiscountConfiguration,
    BuyGetRule,
    Campaign,
    ProductDiscountConfiguration,
    RuleConfig,
    SlotState,
    slot_state,
)
from engines.pricing.context import (
    CustomerInfo,
    DiscountContext,
    DiscountType,
    LineItem,
    to_flag,
    to_money,
    to_quantity,
)
from engines.pricing.engine import (
    DEFAULT_RULE_CACHE_MAX_SIZE,
    DEFAULT_RULE_CACHE_TTL_SECONDS,
    DiscountEngine,
    RuleSetCache,
    build_rules,
)
from engines.pricing.errors import (
    CampaignInactiveError,
    CampaignNotFoundError,
    InvalidPayloadError,
    PricingError,
)
from engines.pricing.evaluation import (
    evaluate_rule,
    generate_rule_id,
    is_one_time_rule,
    validate_rule_config,
)
from engines.pricing.result import (
    AppliedRuleInfo,
    DiscountApplication,
    DiscountResult,
    LineItemResult,
)
from engines.pricing.serialization import (
    ZERO_DISCOUNT_RESULT,
    coerce_discount_result,
    serialize_discount_result,
)
from engines.pricing.services import (
    DiscountService,
    calculate_discounts,
    invalidate_campaigns,
)

__all__ = [
    "BUILTIN_CAMPAIGNS",
    "DEFAULT_DISCOUNTS",
    "NO_DISCOUNTS",
    "PRODUCT_DEFAULTS",
    "CampaignCatalog",
    "BatchDiscountConfiguration",
    "BuyGetRule",
    "Campaign",
    "ProductDiscountConfiguration",
    "RuleConfig",
    "SlotState",
    "slot_state",
    "CustomerInfo",
    "DiscountContext",
    "DiscountType",
    "LineItem",
    "to_flag",
    "to_money",
    "to_quantity",
    "DEFAULT_RULE_CACHE_MAX_SIZE",
    "DEFAULT_RULE_CACHE_TTL_SECONDS",
    "DiscountEngine",
    "RuleSetCache",
    "build_rules",
    "CampaignInactiveError",
    "CampaignNotFoundError",
    "InvalidPayloadError",
    "PricingError",
    "evaluate_rule",
    "generate_rule_id",
    "is_one_time_rule",
    "validate_rule_config",
    "AppliedRuleInfo",
    "DiscountApplication",
    "DiscountResult",
    "LineItemResult",
    "ZERO_DISCOUNT_RESULT",
    "coerce_discount_result",
    "serialize_discount_result",
    "DiscountService",
    "calculate_discounts",
    "invalidate_campaigns",
]
