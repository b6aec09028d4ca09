"""
POS Pricing Engine — Campaign Configuration
=============================================
Campaign-owned rule configuration, supplied fully formed by the caller.

Every rule slot is Optional[RuleConfig]. slot_state() tells the three
cases apart: ABSENT (no config), DISABLED (present, switched off),
ENABLED (present and live). Evaluation only ever sees ENABLED slots.

Wire shape: the POS front end sends camelCase keys
(globalCartPriceRuleJson, lineItemValueRuleJson, ...). from_dict()
accepts those and the snake_case attribute names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.time.temporal import TimeWindow
from engines.pricing.context import DiscountType, to_flag, to_money, to_quantity
from engines.pricing.errors import InvalidPayloadError


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _pick_flag(data: Dict[str, Any], *keys: str, default: bool = False) -> bool:
    return bool(to_flag(_pick(data, *keys, default=default)))


def _parse_datetime(raw: Any) -> Optional[datetime]:
    # Naive timestamps are read as UTC.
    if raw is None:
        return None
    if isinstance(raw, datetime):
        parsed = raw
    else:
        try:
            parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidPayloadError(f"Invalid datetime: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ══════════════════════════════════════════════════════════════
# RULE CONFIG
# ══════════════════════════════════════════════════════════════

class SlotState(Enum):
    ABSENT = "ABSENT"
    DISABLED = "DISABLED"
    ENABLED = "ENABLED"


@dataclass(frozen=True)
class RuleConfig:
    """
    One discount rule: type, value and activation window.

    condition_min defaults to 0 and condition_max to unbounded.
    apply_fixed_once is tri-state: None means the rule does not say,
    so one-time-ness falls back to the campaign flag.
    """

    name: str
    discount_type: DiscountType
    value: Decimal
    is_enabled: bool = True
    condition_min: Optional[Decimal] = None
    condition_max: Optional[Decimal] = None
    apply_fixed_once: Optional[bool] = None
    description: str = ""
    priority: int = 0

    def __post_init__(self):
        object.__setattr__(self, "discount_type", DiscountType.parse(self.discount_type))
        object.__setattr__(self, "value", to_money(self.value))
        object.__setattr__(self, "apply_fixed_once", to_flag(self.apply_fixed_once))
        if self.condition_min is not None:
            object.__setattr__(self, "condition_min", to_money(self.condition_min))
        if self.condition_max is not None:
            object.__setattr__(self, "condition_max", to_money(self.condition_max))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["RuleConfig"]:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise InvalidPayloadError("Rule configuration must be an object.")
        try:
            return cls(
                name=str(_pick(data, "name", default="")),
                discount_type=_pick(data, "type", "discount_type", default="fixed"),
                value=_pick(data, "value", default=0),
                is_enabled=_pick_flag(data, "isEnabled", "is_enabled", default=False),
                condition_min=_pick(data, "conditionMin", "condition_min"),
                condition_max=_pick(data, "conditionMax", "condition_max"),
                apply_fixed_once=_pick(data, "applyFixedOnce", "apply_fixed_once"),
                description=str(_pick(data, "description", default="")),
                priority=int(_pick(data, "priority", default=0)),
            )
        except (ValueError, ArithmeticError) as exc:
            raise InvalidPayloadError(f"Invalid rule configuration: {exc}") from exc


def slot_state(config: Optional[RuleConfig]) -> SlotState:
    if config is None:
        return SlotState.ABSENT
    if not config.is_enabled:
        return SlotState.DISABLED
    return SlotState.ENABLED


# ══════════════════════════════════════════════════════════════
# TARGETED CONFIGURATIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BatchDiscountConfiguration:
    """Rules bound to one exact stock batch."""
    id: str
    product_batch_id: str
    is_active: bool = True
    priority: int = 0
    line_item_value_rule: Optional[RuleConfig] = None
    line_item_quantity_rule: Optional[RuleConfig] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchDiscountConfiguration":
        return cls(
            id=str(data["id"]),
            product_batch_id=str(_pick(data, "productBatchId", "product_batch_id")),
            is_active=_pick_flag(
                data, "isActiveForBatchInCampaign", "is_active", default=True,
            ),
            priority=int(_pick(data, "priority", default=0)),
            line_item_value_rule=RuleConfig.from_dict(
                _pick(data, "lineItemValueRuleJson", "line_item_value_rule")
            ),
            line_item_quantity_rule=RuleConfig.from_dict(
                _pick(data, "lineItemQuantityRuleJson", "line_item_quantity_rule")
            ),
        )


@dataclass(frozen=True)
class ProductDiscountConfiguration:
    """Rules bound to a general product, across all of its batches."""
    id: str
    product_id: str
    is_active: bool = True
    priority: int = 0
    product_name: str = ""
    line_item_value_rule: Optional[RuleConfig] = None
    line_item_quantity_rule: Optional[RuleConfig] = None
    specific_qty_threshold_rule: Optional[RuleConfig] = None
    specific_unit_price_threshold_rule: Optional[RuleConfig] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductDiscountConfiguration":
        return cls(
            id=str(data["id"]),
            product_id=str(_pick(data, "productId", "product_id")),
            is_active=_pick_flag(
                data, "isActiveForProductInCampaign", "is_active", default=True,
            ),
            priority=int(_pick(data, "priority", default=0)),
            product_name=str(_pick(
                data, "productNameAtConfiguration", "product_name", default="",
            )),
            line_item_value_rule=RuleConfig.from_dict(
                _pick(data, "lineItemValueRuleJson", "line_item_value_rule")
            ),
            line_item_quantity_rule=RuleConfig.from_dict(
                _pick(data, "lineItemQuantityRuleJson", "line_item_quantity_rule")
            ),
            specific_qty_threshold_rule=RuleConfig.from_dict(
                _pick(data, "specificQtyThresholdRuleJson", "specific_qty_threshold_rule")
            ),
            specific_unit_price_threshold_rule=RuleConfig.from_dict(
                _pick(
                    data,
                    "specificUnitPriceThresholdRuleJson",
                    "specific_unit_price_threshold_rule",
                )
            ),
        )


BUY_GET_DISCOUNT_TYPES = frozenset({"percentage", "fixed", "free"})


@dataclass(frozen=True)
class BuyGetRule:
    """Buy buy_quantity of one product, get get_quantity of another discounted."""
    id: str
    name: str
    buy_product_id: str
    buy_quantity: int
    get_product_id: str
    get_quantity: int
    discount_type: str = "free"
    discount_value: Decimal = Decimal(0)
    is_repeatable: bool = False
    max_applications: Optional[int] = None
    priority: int = 0
    description: str = ""

    def __post_init__(self):
        if self.buy_quantity <= 0:
            raise ValueError("buy_quantity must be positive.")
        if self.get_quantity <= 0:
            raise ValueError("get_quantity must be positive.")
        if self.discount_type not in BUY_GET_DISCOUNT_TYPES:
            raise ValueError(
                f"discount_type must be one of {sorted(BUY_GET_DISCOUNT_TYPES)}."
            )
        object.__setattr__(self, "discount_value", to_money(self.discount_value))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuyGetRule":
        max_apps = _pick(data, "maxApplications", "max_applications")
        try:
            return cls(
                id=str(data["id"]),
                name=str(_pick(data, "name", default="")),
                buy_product_id=str(_pick(data, "buyProductId", "buy_product_id")),
                buy_quantity=to_quantity(_pick(data, "buyQuantity", "buy_quantity", default=0)),
                get_product_id=str(_pick(data, "getProductId", "get_product_id")),
                get_quantity=to_quantity(_pick(data, "getQuantity", "get_quantity", default=0)),
                discount_type=str(_pick(
                    data, "discountType", "discount_type", default="free",
                )).lower(),
                discount_value=_pick(data, "discountValue", "discount_value", default=0),
                is_repeatable=_pick_flag(data, "isRepeatable", "is_repeatable", default=False),
                max_applications=int(max_apps) if max_apps is not None else None,
                priority=int(_pick(data, "priority", default=0)),
                description=str(_pick(data, "description", default="")),
            )
        except (KeyError, ValueError, ArithmeticError) as exc:
            raise InvalidPayloadError(f"Invalid buy-get rule: {exc}") from exc


# ══════════════════════════════════════════════════════════════
# CAMPAIGN
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Campaign:
    """A named bundle of discount rule configurations."""

    id: str
    name: str
    description: str = ""
    is_active: bool = True
    is_default: bool = False
    is_one_time_per_transaction: bool = False
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    product_configurations: Tuple[ProductDiscountConfiguration, ...] = field(
        default_factory=tuple
    )
    batch_configurations: Tuple[BatchDiscountConfiguration, ...] = field(
        default_factory=tuple
    )
    buy_get_rules: Tuple[BuyGetRule, ...] = field(default_factory=tuple)
    global_cart_price_rule: Optional[RuleConfig] = None
    global_cart_quantity_rule: Optional[RuleConfig] = None
    default_line_item_value_rule: Optional[RuleConfig] = None
    default_line_item_quantity_rule: Optional[RuleConfig] = None
    default_specific_qty_threshold_rule: Optional[RuleConfig] = None
    default_specific_unit_price_threshold_rule: Optional[RuleConfig] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Campaign id must be non-empty.")
        if (
            self.valid_from is not None
            and self.valid_to is not None
            and self.valid_from > self.valid_to
        ):
            raise ValueError("Campaign valid_from must not be after valid_to.")
        for name in ("product_configurations", "batch_configurations", "buy_get_rules"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @property
    def validity(self) -> TimeWindow:
        return TimeWindow(start=self.valid_from, end=self.valid_to)

    def is_active_at(self, now: datetime) -> bool:
        return self.is_active and self.validity.contains(now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Campaign":
        if not isinstance(data, dict):
            raise InvalidPayloadError("Campaign must be an object.")
        if not data.get("id"):
            raise InvalidPayloadError("Campaign id is required.", field_name="id")
        try:
            return cls(
                id=str(data["id"]),
                name=str(_pick(data, "name", default="")),
                description=str(_pick(data, "description", default="")),
                is_active=_pick_flag(data, "isActive", "is_active", default=True),
                is_default=_pick_flag(data, "isDefault", "is_default", default=False),
                is_one_time_per_transaction=_pick_flag(
                    data, "isOneTimePerTransaction", "is_one_time_per_transaction",
                    default=False,
                ),
                valid_from=_parse_datetime(_pick(data, "validFrom", "valid_from")),
                valid_to=_parse_datetime(_pick(data, "validTo", "valid_to")),
                product_configurations=tuple(
                    ProductDiscountConfiguration.from_dict(c)
                    for c in _pick(
                        data, "productConfigurations", "product_configurations",
                        default=[],
                    )
                ),
                batch_configurations=tuple(
                    BatchDiscountConfiguration.from_dict(c)
                    for c in _pick(
                        data, "batchConfigurations", "batch_configurations",
                        default=[],
                    )
                ),
                buy_get_rules=tuple(
                    BuyGetRule.from_dict(r)
                    for r in _pick(data, "buyGetRulesJson", "buy_get_rules", default=[])
                ),
                global_cart_price_rule=RuleConfig.from_dict(
                    _pick(data, "globalCartPriceRuleJson", "global_cart_price_rule")
                ),
                global_cart_quantity_rule=RuleConfig.from_dict(
                    _pick(data, "globalCartQuantityRuleJson", "global_cart_quantity_rule")
                ),
                default_line_item_value_rule=RuleConfig.from_dict(
                    _pick(
                        data, "defaultLineItemValueRuleJson",
                        "default_line_item_value_rule",
                    )
                ),
                default_line_item_quantity_rule=RuleConfig.from_dict(
                    _pick(
                        data, "defaultLineItemQuantityRuleJson",
                        "default_line_item_quantity_rule",
                    )
                ),
                default_specific_qty_threshold_rule=RuleConfig.from_dict(
                    _pick(
                        data, "defaultSpecificQtyThresholdRuleJson",
                        "default_specific_qty_threshold_rule",
                    )
                ),
                default_specific_unit_price_threshold_rule=RuleConfig.from_dict(
                    _pick(
                        data, "defaultSpecificUnitPriceThresholdRuleJson",
                        "default_specific_unit_price_threshold_rule",
                    )
                ),
            )
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise InvalidPayloadError(f"Invalid campaign: {exc}") from exc
