"""
POS HTTP API - Error Mapping
============================
Stable transport error codes and their HTTP status.
"""

from __future__ import annotations

from typing import Any, Optional

from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse

INVALID_REQUEST = "INVALID_REQUEST"
CAMPAIGN_NOT_FOUND = "CAMPAIGN_NOT_FOUND"
CAMPAIGN_INACTIVE = "CAMPAIGN_INACTIVE"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
HANDLER_EXECUTION_FAILED = "HANDLER_EXECUTION_FAILED"

_STATUS_BY_CODE = {
    INVALID_REQUEST: 400,
    CAMPAIGN_NOT_FOUND: 404,
    CAMPAIGN_INACTIVE: 409,
    METHOD_NOT_ALLOWED: 405,
    HANDLER_EXECUTION_FAILED: 500,
}


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
        ),
    ).to_dict()


def success_response(data: Any) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data).to_dict()


def status_for_payload(payload: dict[str, Any]) -> int:
    if payload.get("ok"):
        return 200
    code = (payload.get("error") or {}).get("code")
    return _STATUS_BY_CODE.get(code, 400)
