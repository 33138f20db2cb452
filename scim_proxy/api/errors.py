"""Error handlers for the application."""
from __future__ import annotations
import logging
from typing import Optional

from flask import jsonify, Response
from werkzeug.exceptions import HTTPException

from scim_proxy.core.models import Method

SCIM_ERROR_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:Error"

logger = logging.getLogger(__name__)


class ScimError(Exception):
    """SCIM protocol error with HTTP status and optional scimType."""

    def __init__(self, status: int, detail: str, scim_type: Optional[str] = None):
        self.status = status
        self.detail = detail
        self.scim_type = scim_type
        super().__init__(detail)

    def to_dict(self) -> dict:
        """Convert to SCIM error response format."""
        error_dict = {
            "schemas": [SCIM_ERROR_SCHEMA],
            "status": str(self.status),
            "detail": self.detail
        }
        if self.scim_type:
            error_dict["scimType"] = self.scim_type
        return error_dict


def scim_error_response(status: int, detail: str, scim_type: Optional[str] = None) -> Response:
    """Create SCIM error Response object.

    Args:
        status: HTTP status code
        detail: Human-readable error description
        scim_type: Optional SCIM error type (invalidSyntax, invalidValue, etc.)

    Returns:
        Flask Response object with SCIM error body and status code
    """
    error = ScimError(status, detail, scim_type)
    response = jsonify(error.to_dict())
    response.status_code = status
    return response


def method_not_allowed_response() -> Response:
    """Empty 405 advertising the proxied verbs."""
    return Response(status=405, headers={"Allow": ",".join(Method.allowed())})


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ScimError)
    def handle_scim_error(error: ScimError):
        return scim_error_response(error.status, error.detail, error.scim_type)

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return scim_error_response(400, str(getattr(error, "description", error)), "invalidSyntax")

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return scim_error_response(404, "Resource not found")

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle verbs the router rejects before reaching the proxy."""
        return method_not_allowed_response()

    @app.errorhandler(413)
    def request_too_large(error):
        """Handle payload too large errors."""
        return scim_error_response(413, "Request payload exceeds maximum allowed size", "invalidValue")

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        # ALWAYS log the full error (even in production) - logs are secure
        logger.error(f"Unhandled exception: {error}", exc_info=True)
        return scim_error_response(500, "An unexpected error occurred")
