"""Tests for the routing-layer access guards."""

from __future__ import annotations

import pytest
from equiprent.api.deps import current_user_id, require_roles
from equiprent.core.errors import Forbidden
from flask_jwt_extended.exceptions import NoAuthorizationError
from tests.helpers.auth import issue_token
from tests.helpers.http import bearer


@require_roles("owner", "admin")
def _owners_only():
    return current_user_id()


def test_matching_role_is_allowed(app, db):
    with app.test_request_context(headers=bearer(issue_token(7, roles=("owner",)))):
        assert _owners_only() == 7


def test_other_role_is_forbidden(app, db):
    with app.test_request_context(headers=bearer(issue_token(7, roles=("renter",)))):
        with pytest.raises(Forbidden):
            _owners_only()


def test_missing_token_is_rejected(app, db):
    with app.test_request_context():
        with pytest.raises(NoAuthorizationError):
            _owners_only()
