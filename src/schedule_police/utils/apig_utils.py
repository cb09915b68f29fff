import base64
import enum
import json
import logging
import os
import typing

from schedule_police.models.auth_models import Viewer
from schedule_police.utils.base_types import Initial

_LOGGER = logging.getLogger(__name__)


QueryParams = typing.NewType("QueryParams", dict[str, str])


class ErrorCode(enum.Enum):
    VALIDATION_ERROR = (400, "Invalid request.")
    AUTHENTICATION_FAILED = (401, "Authentication failed.")
    AUTHORIZATION_FAILED = (403, "You are not allowed to perform this action.")
    RESOURCE_NOT_FOUND = (404, "Resource not found.")
    METHOD_NOT_ALLOWED = (405, "HTTP method not allowed.")
    STATE_CONFLICT = (409, "The resource is not in a state that allows this action.")
    INTERNAL_ERROR = (500, "Internal server error.")
    UPSTREAM_SERVICE_UNAVAILABLE = (502, "An upstream service is unavailable.")

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def default_message(self) -> str:
        return self.value[1]


def get_event_body(event: dict) -> bytes:
    body = event.get("body")
    if body is None:
        return b""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


def get_header(event: dict, name: str) -> typing.Optional[str]:
    # HTTP APIs lowercase header names, REST APIs keep whatever the client sent.
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def get_method(event: dict) -> str:
    # HTTP APIs (payload v2) nest the method under requestContext, REST APIs put it at the top level.
    method = event.get("requestContext", {}).get("http", {}).get("method") or event.get("httpMethod")
    return method or "UNKNOWN"


def get_path(event: dict) -> str:
    return event.get("requestContext", {}).get("http", {}).get("path", "")


def get_query_string_parameters(event: dict) -> QueryParams:
    return QueryParams(event.get("queryStringParameters") or {})


def get_viewer_from_event(event: dict[str, typing.Any]) -> typing.Optional[Viewer]:
    """
    Extracts the dashboard user from the Lambda authorizer context. The authorizer places the
    decoded session payload under the 'lambda' key with the assistant initial in 'sub' and the
    role in 'role'.
    """
    try:
        context = event.get("requestContext", {}).get("authorizer", {}).get("lambda", {})
        username = context.get("sub")
        if not username:
            _LOGGER.warning("Username ('sub') not found in authorizer's lambda context.")
            return None
        return Viewer(username=Initial(str(username)), role=str(context.get("role", "")))
    except Exception as e:
        _LOGGER.error("Error extracting viewer from event: %s", str(e))
        return None


def get_allowed_origin(event: dict[str, typing.Any]) -> str:
    """
    Echoes the Origin header back when it is the dashboard (DASHBOARD_ORIGIN) or a local
    development server; otherwise returns "null" so the browser drops the response.
    """
    origin = get_header(event, "origin") or ""

    if not origin:
        return "*"

    if origin.startswith("http://localhost:") or origin.startswith("http://127.0.0.1:"):
        return origin

    dashboard_origin = os.environ.get("DASHBOARD_ORIGIN", "")
    if dashboard_origin and origin == dashboard_origin.rstrip("/"):
        return origin

    _LOGGER.warning(f"Origin not allowed: {origin}")
    return "null"


def format_lambda_response(
    status_code: int,
    body: typing.Any,
    *,
    event: typing.Optional[dict[str, typing.Any]] = None,
    additional_headers: typing.Optional[dict[str, str]] = None,
) -> dict[str, typing.Any]:
    """
    Formats API Gateway proxy responses with CORS headers.
    """
    allowed_origin = get_allowed_origin(event) if event else "*"

    headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": allowed_origin,
        "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Line-Signature",
        "Access-Control-Allow-Methods": "OPTIONS,GET,POST,PATCH",
    }
    if additional_headers:
        headers.update(additional_headers)

    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(body) if body is not None else None,
    }


def create_success_response(
    message: str,
    data: typing.Any = None,
    *,
    status_code: int = 200,
    event: typing.Optional[dict[str, typing.Any]] = None,
) -> dict[str, typing.Any]:
    return format_lambda_response(status_code, {"success": True, "message": message, "data": data}, event=event)


def create_error_response(
    error_code: ErrorCode,
    message: typing.Optional[str] = None,
    *,
    details: typing.Any = None,
    event: typing.Optional[dict[str, typing.Any]] = None,
) -> dict[str, typing.Any]:
    body: dict[str, typing.Any] = {
        "success": False,
        "message": message or error_code.default_message,
        "errorCode": error_code.name,
    }
    if details is not None:
        body["details"] = details
    return format_lambda_response(error_code.status_code, body, event=event)
