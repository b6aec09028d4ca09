"""
POS HTTP API - Public API
=========================
"""

from core.http_api.contracts import (
    CalculateDiscountsHttpRequest,
    HttpApiErrorBody,
    HttpApiResponse,
    RefundHttpRequest,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import (
    CAMPAIGN_INACTIVE,
    CAMPAIGN_NOT_FOUND,
    HANDLER_EXECUTION_FAILED,
    INVALID_REQUEST,
    METHOD_NOT_ALLOWED,
    error_response,
    status_for_payload,
    success_response,
)
from core.http_api.handlers import post_calculate_discounts, post_refund

__all__ = [
    "CalculateDiscountsHttpRequest",
    "RefundHttpRequest",
    "HttpApiErrorBody",
    "HttpApiResponse",
    "HttpApiDependencies",
    "CAMPAIGN_INACTIVE",
    "CAMPAIGN_NOT_FOUND",
    "HANDLER_EXECUTION_FAILED",
    "INVALID_REQUEST",
    "METHOD_NOT_ALLOWED",
    "error_response",
    "status_for_payload",
    "success_response",
    "post_calculate_discounts",
    "post_refund",
]
