"""SCIM proxy endpoint.

Every request path is forwarded to the downstream SCIM endpoint. PUT and
PATCH bodies are rewritten into the downstream PatchOp dialect first.

Architecture:
    Identity provider -> proxy blueprint -> core.scim_transformer -> UpstreamClient -> downstream SCIM

Response mapping:
    - Downstream 204 -> 200 with {"id": <last path segment>}
    - Any other 2xx  -> 200 with the downstream body
    - Errors         -> downstream status and body, relayed
"""
from __future__ import annotations
import json
import logging
from typing import Any

from flask import Blueprint, Response, current_app, request

from scim_proxy.api.errors import ScimError, method_not_allowed_response, scim_error_response
from scim_proxy.core.models import Method
from scim_proxy.core.scim_transformer import normalize
from scim_proxy.core.upstream import (
    DirectoryService,
    UpstreamAPIError,
    UpstreamClient,
    UpstreamConnectionError,
    UpstreamResponse,
    parse_group_locator,
)
from scim_proxy.core.validators import InvalidPayloadError, MethodNotAllowedError

bp = Blueprint("proxy", __name__)

# Verbs routed to the handler so the 405 is produced here rather than by the router
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

# Response headers not relayed: the body is re-encoded by this service
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "content-encoding",
    "content-length",
    "keep-alive",
    "transfer-encoding",
})

logger = logging.getLogger(__name__)


def _parse_body() -> Any:
    """Decode the JSON body, or None when the request has none."""
    raw = request.get_data(cache=True)
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ScimError(400, "Request body is not valid JSON", "invalidSyntax") from None


def _dispatch_path() -> str:
    query = request.query_string.decode("utf-8")
    return f"{request.path}?{query}" if query else request.path


def _relay(response: UpstreamResponse, path: str) -> Response:
    """Map a downstream response onto the response returned to the identity provider."""
    if response.status == 204:
        payload = {"id": path.rstrip("/").split("/")[-1]}
    else:
        payload = response.data

    status = 200 if response.ok else response.status
    headers = {
        key: value
        for key, value in response.headers.items()
        if key.lower() not in HOP_BY_HOP_HEADERS
    }
    body = "" if payload is None else json.dumps(payload)
    if not any(key.lower() == "content-type" for key in headers):
        headers["Content-Type"] = "application/scim+json"
    return Response(body, status=status, headers=headers)


def _relay_error(error: UpstreamAPIError) -> Response:
    body = "" if error.data is None else json.dumps(error.data)
    return Response(body, status=error.status_code, content_type="application/scim+json")


@bp.after_request
def add_correlation_id(response):
    """Echo the correlation ID for tracing."""
    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        response.headers["X-Correlation-Id"] = correlation_id
    return response


@bp.route("/", defaults={"resource_path": ""}, methods=ROUTED_METHODS, provide_automatic_options=False)
@bp.route("/<path:resource_path>", methods=ROUTED_METHODS, provide_automatic_options=False)
def proxy(resource_path: str):
    """Rewrite (when needed) and forward one request downstream."""
    try:
        method = Method.from_http(request.method)
    except MethodNotAllowedError as exc:
        logger.info(f"Rejected method {exc.method} for {request.path}")
        return method_not_allowed_response()

    cfg = current_app.config["APP_CONFIG"]
    client: UpstreamClient = current_app.config["UPSTREAM_CLIENT"]
    directory: DirectoryService = current_app.config["DIRECTORY_SERVICE"]

    logger.info(f"Method: {method.value} | Path: {request.path}")

    if request.content_length and request.content_length > cfg.max_payload_bytes:
        return scim_error_response(413, "Request payload too large", "invalidValue")

    body = _parse_body()
    logger.debug(f"Body: {body!r}")

    headers = dict(request.headers)
    fetch_members = directory.member_fetcher(headers) if parse_group_locator(request.path) else None

    try:
        normalized = normalize(
            method,
            headers,
            request.path,
            body,
            fetch_members,
            max_workers=cfg.fanout_max_workers,
        )
    except InvalidPayloadError as exc:
        return scim_error_response(400, str(exc), "invalidSyntax")
    except UpstreamAPIError as exc:
        logger.warning(f"Membership lookup failed for {request.path}: {exc}")
        return _relay_error(exc)
    except UpstreamConnectionError as exc:
        logger.error(f"Membership lookup could not reach downstream: {exc}")
        return scim_error_response(502, "Downstream SCIM endpoint unreachable")

    try:
        response = client.send(
            normalized.method,
            _dispatch_path(),
            headers=normalized.headers,
            data=normalized.data,
        )
    except UpstreamConnectionError as exc:
        logger.error(f"Downstream unreachable: {exc}")
        return scim_error_response(502, "Downstream SCIM endpoint unreachable")

    logger.info(f"Downstream {normalized.method.value.upper()} {request.path} -> {response.status}")
    return _relay(response, request.path)
