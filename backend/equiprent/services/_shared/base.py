# equiprent/services/_shared/base.py
from __future__ import annotations

import logging
from datetime import UTC, datetime

from equiprent.core import errors as api_errors
from equiprent.services._shared.errors import (
    AlreadyRegisteredError,
    AuthenticationError,
    NotFoundError,
    ServiceError,
    WeakPasswordError,
)


class BaseService:
    """
    Shared plumbing for the auth, registration, OTP and session services.

    Subclasses get a module logger (``self.log``), a patchable clock
    (:meth:`now_utc`) and the mapping from :class:`ServiceError` to the HTTP
    problem types raised by the blueprints.
    """

    def __init__(self) -> None:
        self.log = logging.getLogger(type(self).__module__)

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Return the :class:`~equiprent.core.errors.APIError` matching ``exc``.

        :param exc: Error raised by a service call.
        :returns: An API error carrying the same ``code``, or ``exc`` itself
            when it is not a :class:`ServiceError`.
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc), code=exc.code)
        if isinstance(exc, AlreadyRegisteredError):
            return api_errors.Conflict(str(exc), code=exc.code)
        if isinstance(exc, AuthenticationError):
            return api_errors.Unauthorized(str(exc), code=exc.code)
        if isinstance(exc, WeakPasswordError):
            return api_errors.BadRequest(str(exc), code=exc.code, details={"reason": exc.reason})
        if isinstance(exc, ServiceError):
            return api_errors.BadRequest(str(exc), code=exc.code)
        return exc
