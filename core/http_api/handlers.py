"""
POS HTTP API - Framework-Agnostic Handlers
==========================================
Pure handler functions over contracts and injected dependencies.
Every handler returns an envelope dict; none raises.
"""

from __future__ import annotations

import logging
from typing import Any

from core.http_api.contracts import CalculateDiscountsHttpRequest, RefundHttpRequest
from core.http_api.errors import (
    CAMPAIGN_INACTIVE,
    CAMPAIGN_NOT_FOUND,
    HANDLER_EXECUTION_FAILED,
    INVALID_REQUEST,
    error_response,
    success_response,
)
from engines.pricing.config import Campaign
from engines.pricing.errors import (
    CampaignInactiveError,
    CampaignNotFoundError,
    InvalidPayloadError,
)
from engines.pricing.serialization import (
    coerce_discount_result,
    serialize_discount_result,
)

logger = logging.getLogger("pos.http")


def _run(call, *, failure_message: str) -> dict[str, Any]:
    try:
        return success_response(call())
    except CampaignNotFoundError as exc:
        logger.warning("Request refers to unknown campaign %s.", exc.campaign_id)
        return error_response(
            code=CAMPAIGN_NOT_FOUND,
            message=str(exc),
            details={"campaign_id": exc.campaign_id},
        )
    except CampaignInactiveError as exc:
        logger.info("Request refers to inactive campaign %s.", exc.campaign_id)
        return error_response(
            code=CAMPAIGN_INACTIVE,
            message=str(exc),
            details={"campaign_id": exc.campaign_id},
        )
    except InvalidPayloadError as exc:
        return error_response(
            code=INVALID_REQUEST,
            message=str(exc),
            details={"field": exc.field_name} if exc.field_name else {},
        )
    except Exception as exc:
        logger.exception(failure_message)
        return error_response(
            code=HANDLER_EXECUTION_FAILED,
            message=failure_message,
            details={"error_type": type(exc).__name__},
        )


def _resolve_campaign(request: CalculateDiscountsHttpRequest, dependencies) -> Campaign:
    if request.active_campaign is not None:
        campaign = Campaign.from_dict(request.active_campaign)
    else:
        campaign = dependencies.catalog.find_by_id(request.campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(request.campaign_id)
    if not campaign.is_active_at(dependencies.clock.now_utc()):
        raise CampaignInactiveError(campaign.id)
    return campaign


def post_calculate_discounts(
    request: CalculateDiscountsHttpRequest,
    dependencies,
) -> dict[str, Any]:
    def _call():
        campaign = _resolve_campaign(request, dependencies)
        result = dependencies.discount_service.calculate_discounts(
            request.cart, campaign,
        )
        return coerce_discount_result(serialize_discount_result(result))

    return _run(_call, failure_message="Failed to calculate discounts.")


def post_refund(
    request: RefundHttpRequest,
    dependencies,
) -> dict[str, Any]:
    def _call():
        return dependencies.refund_service.process_refund(
            request.original_transaction,
            request.kept_items,
            campaign_id=request.campaign_id,
        )

    payload = _run(_call, failure_message="Failed to process refund transaction.")
    if not payload["ok"]:
        return payload
    outcome = payload["data"]
    if not outcome.ok:
        return error_response(code=outcome.error_code, message=outcome.message)
    return success_response(outcome.transaction.to_dict())
