"""
POS HTTP API - Contracts
========================
Framework-agnostic request/response DTOs for the pricing endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class CalculateDiscountsHttpRequest:
    cart: tuple[dict[str, Any], ...]
    active_campaign: Optional[dict[str, Any]] = None
    campaign_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.cart, tuple):
            raise ValueError("cart must be a tuple.")
        if not all(isinstance(item, dict) for item in self.cart):
            raise ValueError("cart items must be objects.")
        if self.active_campaign is not None and not isinstance(self.active_campaign, dict):
            raise ValueError("activeCampaign must be an object.")
        if self.active_campaign is None and not self.campaign_id:
            raise ValueError("activeCampaign or campaignId is required.")
        if self.campaign_id is not None and not isinstance(self.campaign_id, str):
            raise ValueError("campaignId must be a string.")


@dataclass(frozen=True)
class RefundHttpRequest:
    original_transaction: dict[str, Any]
    kept_items: tuple[dict[str, Any], ...]
    campaign_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.original_transaction, dict):
            raise ValueError("originalTransaction must be an object.")
        if not isinstance(self.kept_items, tuple):
            raise ValueError("keptItems must be a tuple.")
        if not all(isinstance(item, dict) for item in self.kept_items):
            raise ValueError("keptItems must be objects.")
        if self.campaign_id is not None and not isinstance(self.campaign_id, str):
            raise ValueError("campaignId must be a string.")


@dataclass(frozen=True)
class HttpApiErrorBody:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class HttpApiResponse:
    ok: bool
    data: Any = None
    error: Optional[HttpApiErrorBody] = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        if self.error is None:
            raise ValueError("error must be set when ok is False.")
        return {"ok": False, "error": self.error.to_dict()}
