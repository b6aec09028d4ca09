"""
POS Pricing Engine — Rule Strategies
"""

from engines.pricing.rules.base import DiscountRule, RuleCandidate, RuleKind, first_positive
from engines.pricing.rules.batch import BatchSpecificRule
from engines.pricing.rules.buy_get import BuyXGetYRule
from engines.pricing.rules.cart_total import CartTotalRule
from engines.pricing.rules.custom import CustomItemDiscountRule
from engines.pricing.rules.default_item import (
    PRODUCT_DEFAULTS_CAMPAIGN_ID,
    DefaultItemRule,
)
from engines.pricing.rules.product import ProductLevelRule

__all__ = [
    "DiscountRule",
    "RuleCandidate",
    "RuleKind",
    "first_positive",
    "CustomItemDiscountRule",
    "BatchSpecificRule",
    "ProductLevelRule",
    "BuyXGetYRule",
    "DefaultItemRule",
    "CartTotalRule",
    "PRODUCT_DEFAULTS_CAMPAIGN_ID",
]
