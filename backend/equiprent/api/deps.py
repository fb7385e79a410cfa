"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from equiprent.core.errors import Forbidden, Unauthorized
from equiprent.factory import SERVICES_KEY
from equiprent.services._shared.dto import RequestMeta
from equiprent.services._shared.policies.roles import is_authorized

if TYPE_CHECKING:
    from equiprent.services.auth.dto import AuthSettings
    from equiprent.services.auth.service import AuthService
    from equiprent.services.registration.service import RegistrationService
    from equiprent.services.sessions import RefreshSessionService

F = TypeVar("F", bound=Callable[..., Any])


def _service(name: str) -> Any:
    services = current_app.extensions.get(SERVICES_KEY)
    if services is None:
        raise RuntimeError("Services are not wired. Was the app built with create_app()?")
    return services[name]


def get_auth_service() -> AuthService:
    return cast("AuthService", _service("auth"))


def get_registration_service() -> RegistrationService:
    return cast("RegistrationService", _service("registration"))


def get_session_service() -> RefreshSessionService:
    return cast("RefreshSessionService", _service("sessions"))


def get_auth_settings() -> AuthSettings:
    return cast("AuthSettings", _service("settings"))


def client_meta() -> RequestMeta:
    """Client address and user agent of the current request (session audit)."""

    user_agent = request.headers.get("User-Agent")
    return RequestMeta(ip=request.remote_addr, user_agent=user_agent[:512] if user_agent else None)


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_roles(*required: str) -> Callable[[F], F]:
    """Ensure the verified access token presents at least one of ``required``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            claims = get_jwt() or {}
            if not is_authorized(required, claims.get("roles", [])):
                raise Forbidden("Insufficient role")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def current_user_id() -> int:
    """Return the numeric ``sub`` of the verified access token."""

    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError) as exc:
        raise Unauthorized("Invalid token subject", code="invalid_token") from exc


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
