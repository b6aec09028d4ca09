"""
POS Django Adapter Views
========================
Pass-through HTTP views over core/http_api handlers.
"""

from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import build_dependencies
from core.http_api.contracts import CalculateDiscountsHttpRequest, RefundHttpRequest
from core.http_api.errors import (
    INVALID_REQUEST,
    METHOD_NOT_ALLOWED,
    error_response,
    status_for_payload,
)
from core.http_api.handlers import post_calculate_discounts, post_refund


def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _coerce_items(value: Any, field_name: str) -> tuple[Any, ...]:
    if isinstance(value, list):
        return tuple(value)
    raise ValueError(f"{field_name} must be a list.")


def _dispatch(handler, request_contract_factory, request: HttpRequest) -> JsonResponse:
    try:
        body = _parse_json_body(request)
        contract = request_contract_factory(body=body)
    except (ValueError, KeyError) as exc:
        return _json_error(INVALID_REQUEST, str(exc), status=400)

    payload = handler(contract, build_dependencies())
    return JsonResponse(payload, status=status_for_payload(payload))


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        METHOD_NOT_ALLOWED,
        "Method not allowed for this endpoint.",
        status=405,
    )


def _calculate_discounts_contract_factory(*, body):
    if "cart" not in body:
        raise ValueError('"cart" is required.')
    return CalculateDiscountsHttpRequest(
        cart=_coerce_items(body["cart"], "cart"),
        active_campaign=body.get("activeCampaign"),
        campaign_id=body.get("campaignId"),
    )


def _refund_contract_factory(*, body):
    return RefundHttpRequest(
        original_transaction=body["originalTransaction"],
        kept_items=_coerce_items(body.get("keptItems", []), "keptItems"),
        campaign_id=body.get("campaignId"),
    )


@csrf_exempt
def calculate_discounts_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch(
        post_calculate_discounts,
        _calculate_discounts_contract_factory,
        request,
    )


@csrf_exempt
def refunds_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch(post_refund, _refund_contract_factory, request)
