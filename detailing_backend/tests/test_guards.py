"""
Role guards, session token handling and the API error mapping.
"""

from datetime import timedelta

import pytest

from detailing_backend.app.core.dependencies import session_user_from_token
from detailing_backend.app.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ContractViolationError,
    InsufficientPermissionsError,
    RequestValidationFailed,
    ResourceNotFoundError,
    UpstreamServiceError,
    map_api_error,
)
from detailing_backend.app.core.guards import ensure_role, require_admin, require_detailer, require_user
from detailing_backend.app.core.jwt import create_access_token
from detailing_backend.app.models.enums import UserRole
from detailing_backend.app.schemas.auth import UserProfile


def _profile(role):
    return UserProfile(id="p-1", role=role)


class TestRoleGuards:

    def test_no_profile_is_unauthenticated(self):
        for guard in (require_user, require_detailer, require_admin):
            with pytest.raises(AuthenticationError):
                guard(None)

    def test_customer_passes_user_guard_only(self):
        profile = _profile(UserRole.USER)
        assert require_user(profile) is profile
        with pytest.raises(InsufficientPermissionsError) as exc_info:
            require_detailer(profile)
        assert exc_info.value.message == "Detailer access required"

    def test_detailer_is_not_admin(self):
        profile = _profile(UserRole.DETAILER)
        assert require_detailer(profile) is profile
        with pytest.raises(InsufficientPermissionsError) as exc_info:
            require_admin(profile)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Admin access required"

    def test_admin_passes_every_guard(self):
        profile = _profile(UserRole.ADMIN)
        assert require_detailer(profile) is profile
        assert require_admin(profile) is profile

    def test_profile_without_role_is_forbidden(self):
        with pytest.raises(InsufficientPermissionsError):
            require_detailer(_profile(None))

    def test_ensure_role(self):
        profile = _profile(UserRole.DETAILER)
        assert ensure_role(profile, [UserRole.DETAILER, UserRole.ADMIN]) is profile
        with pytest.raises(InsufficientPermissionsError):
            ensure_role(profile, [UserRole.ADMIN])


class TestSessionTokens:

    def test_valid_token(self):
        token = create_access_token({"sub": "p-1", "email": "a@example.com"})
        user = session_user_from_token(token)
        assert user.id == "p-1"
        assert user.email == "a@example.com"

    def test_missing_expired_or_tampered_token(self):
        expired = create_access_token({"sub": "p-1"}, expires_delta=timedelta(seconds=-10))
        valid = create_access_token({"sub": "p-1"})

        assert session_user_from_token(None) is None
        assert session_user_from_token(expired) is None
        assert session_user_from_token(valid[:-4] + "abcd") is None
        assert session_user_from_token("not-a-jwt") is None

    def test_token_without_subject(self):
        assert session_user_from_token(create_access_token({"email": "a@example.com"})) is None


class TestErrorMapping:

    @pytest.mark.parametrize(
        "exc, status_code, message",
        [
            (AuthenticationError(), 401, "Authentication required"),
            (InsufficientPermissionsError("Admin access required"), 403, "Admin access required"),
            (ResourceNotFoundError("Booking", "b-1"), 404, "Booking not found"),
            (RequestValidationFailed("booking_lat and booking_lng are required"), 400,
             "booking_lat and booking_lng are required"),
            (ConfigurationError("JWT secret"), 500, "Server configuration error: Missing JWT secret"),
        ],
    )
    def test_typed_errors_forward_their_message(self, exc, status_code, message):
        assert map_api_error(exc) == (status_code, {"error": message})

    def test_upstream_failures_are_generic(self):
        assert map_api_error(UpstreamServiceError("Failed to accept booking")) == (
            500, {"error": "Internal server error"}
        )
        assert map_api_error(ContractViolationError("accept_booking", "missing id")) == (
            500, {"error": "Internal server error"}
        )

    def test_unknown_errors_are_generic(self):
        assert map_api_error(RuntimeError("secret stack detail")) == (500, {"error": "Internal server error"})
