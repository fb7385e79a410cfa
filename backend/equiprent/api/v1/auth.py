"""Authentication endpoints using the service layer.

The refresh token never appears in response bodies: it travels in an
HttpOnly cookie and access tokens are returned as JSON.
"""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from equiprent.api.deps import (
    client_meta,
    current_user_id,
    get_auth_service,
    get_auth_settings,
    get_registration_service,
    get_session_service,
    json_response,
    require_auth,
    timing,
)
from equiprent.core.errors import Unauthorized
from equiprent.core.extensions import limiter
from equiprent.schemas import (
    ChangePasswordSchema,
    CompleteRegistrationSchema,
    EmailVerifiedSchema,
    ForgotPasswordSchema,
    LoginSchema,
    OtpSentSchema,
    ProfileSchema,
    RegisterInitSchema,
    ResendOtpSchema,
    ResetPasswordSchema,
    ResetTokenInfoSchema,
    ResetTokenQuerySchema,
    SessionSchema,
    SignUpSchema,
    TokenResponseSchema,
    VerifyEmailSchema,
)
from equiprent.services._shared.errors import InvalidOrExpiredResetTokenError
from equiprent.services._shared.ports import UploadedFile
from equiprent.services.auth.dto import (
    ChangePasswordIn,
    ResetPasswordIn,
    SignInIn,
    SignUpIn,
    TokenPairOut,
)
from equiprent.services.registration.dto import (
    CompleteRegistrationIn,
    RegisterInitIn,
    VerifyEmailIn,
)

bp = Blueprint("auth", __name__, url_prefix="/auth")

signup_schema = SignUpSchema()
login_schema = LoginSchema()
register_init_schema = RegisterInitSchema()
verify_email_schema = VerifyEmailSchema()
resend_otp_schema = ResendOtpSchema()
complete_schema = CompleteRegistrationSchema()
change_password_schema = ChangePasswordSchema()
forgot_password_schema = ForgotPasswordSchema()
reset_password_schema = ResetPasswordSchema()
reset_query_schema = ResetTokenQuerySchema()
token_schema = TokenResponseSchema()
profile_schema = ProfileSchema()
otp_sent_schema = OtpSentSchema()
email_verified_schema = EmailVerifiedSchema()
reset_info_schema = ResetTokenInfoSchema()
sessions_schema = SessionSchema(many=True)


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


# ------------------------------ cookie helpers ----------------------------- #


def _cookie_name() -> str:
    return str(current_app.config.get("REFRESH_TOKEN_COOKIE_NAME", "refresh_token"))


def _cookie_flags() -> dict:
    secure = bool(current_app.config.get("REFRESH_COOKIE_SECURE", False))
    return {
        "httponly": True,
        "secure": secure,
        "samesite": "None" if secure else "Lax",
        "path": "/",
    }


def _set_refresh_cookie(response: Response, refresh_token: str) -> Response:
    max_age = int(get_auth_settings().refresh_ttl.total_seconds())
    response.set_cookie(_cookie_name(), refresh_token, max_age=max_age, **_cookie_flags())
    return response


def _clear_refresh_cookie(response: Response) -> Response:
    flags = _cookie_flags()
    response.delete_cookie(
        _cookie_name(),
        path=flags["path"],
        secure=flags["secure"],
        httponly=flags["httponly"],
        samesite=flags["samesite"],
    )
    return response


def _token_response(pair: TokenPairOut, *, status: int = 200, **extra: object) -> Response:
    body = {"data": {**token_schema.dump({"access_token": pair.access_token}), **extra}}
    return _set_refresh_cookie(json_response(body, status=status), pair.refresh_token)


def _message(text: str) -> Response:
    return json_response({"data": {"message": text}})


# ------------------------------- registration ------------------------------ #


@bp.post("/register")
@timing
def register():
    """Create an account directly and sign it in."""

    data = signup_schema.load(_json_body())
    pair = get_auth_service().sign_up(SignUpIn(**data), client_meta())
    return _token_response(pair, status=201)


@bp.post("/register/init")
@timing
def register_init():
    """Start the e-mail verified registration and send an OTP."""

    data = register_init_schema.load(_json_body())
    result = get_registration_service().register_init(RegisterInitIn(**data), client_meta())
    return json_response({"data": otp_sent_schema.dump(result)})


@bp.post("/register/verify")
@timing
def register_verify():
    """Exchange a valid OTP for a short-lived completion token."""

    data = verify_email_schema.load(_json_body())
    result = get_registration_service().verify_email(VerifyEmailIn(**data))
    return json_response({"data": email_verified_schema.dump(result)})


@bp.post("/register/resend")
@timing
def register_resend():
    """Send a fresh OTP for a pending registration."""

    data = resend_otp_schema.load(_json_body())
    result = get_registration_service().resend_otp(data["email"])
    return json_response({"data": otp_sent_schema.dump(result)})


@bp.post("/register/complete")
@timing
def register_complete():
    """Create the verified account (multipart form with an ``avatar`` file)."""

    data = complete_schema.load(request.form.to_dict())
    upload = request.files.get("avatar")
    avatar = None
    if upload is not None and upload.filename:
        avatar = UploadedFile(
            data=upload.read(), filename=upload.filename, content_type=upload.mimetype
        )
    result = get_registration_service().complete_registration(
        CompleteRegistrationIn(**data, avatar=avatar), client_meta()
    )
    return _token_response(result.tokens, status=201, user=profile_schema.dump(result.user))


# ------------------------------ session lifecycle -------------------------- #


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and open a refresh session."""

    data = login_schema.load(_json_body())
    pair = get_auth_service().sign_in(SignInIn(**data), client_meta())
    return _token_response(pair)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and issue a new access token."""

    presented = request.cookies.get(_cookie_name())
    if not presented:
        raise Unauthorized("Refresh token missing", code="missing_refresh_token")
    service = get_auth_service()
    subject_id = service.subject_from_refresh_token(presented)
    pair = service.refresh(subject_id, presented, client_meta())
    return _token_response(pair)


@bp.post("/logout")
@timing
def logout():
    """Drop the current refresh session (if any) and clear the cookie."""

    get_auth_service().logout(request.cookies.get(_cookie_name()))
    return _clear_refresh_cookie(_message("Logged out"))


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every refresh session of the authenticated user."""

    revoked = get_auth_service().logout_all(current_user_id())
    body = json_response({"data": {"message": "Logged out from all devices", "revoked": revoked}})
    return _clear_refresh_cookie(body)


# --------------------------------- passwords ------------------------------- #


@bp.post("/password/change")
@require_auth
@timing
def change_password():
    """Change the password; every session is revoked afterwards."""

    data = change_password_schema.load(_json_body())
    get_auth_service().change_password(
        ChangePasswordIn(
            user_id=current_user_id(),
            current_password=data["current_password"],
            new_password=data["new_password"],
        )
    )
    return _clear_refresh_cookie(_message("Password changed; please sign in again"))


@bp.post("/password/forgot")
@timing
def forgot_password():
    """Send a reset link. The answer is identical whether or not the email exists."""

    data = forgot_password_schema.load(_json_body())
    get_auth_service().forgot_password(data["email"])
    return _message("If the email is registered, a reset link has been sent")


@bp.post("/password/reset")
@timing
def reset_password():
    """Set a new password from a reset token."""

    data = reset_password_schema.load(_json_body())
    get_auth_service().reset_password(
        ResetPasswordIn(token=data["token"], new_password=data["new_password"])
    )
    return _message("Password has been reset")


@bp.get("/password/reset/verify")
@timing
def verify_reset_token():
    """Tell the frontend whether a reset link is still usable."""

    data = reset_query_schema.load(request.args.to_dict())
    info = get_auth_service().get_reset_token_info(data["token"])
    if info is None:
        raise InvalidOrExpiredResetTokenError()
    payload = {"valid": True, "email": info.email, "expires_at": info.expires_at}
    return json_response({"data": reset_info_schema.dump(payload)})


# ---------------------------------- profile -------------------------------- #


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile."""

    profile = get_auth_service().get_profile(current_user_id())
    return json_response({"data": profile_schema.dump(profile)})


@bp.get("/sessions")
@require_auth
@timing
def list_sessions():
    """List the live refresh sessions of the authenticated user, newest first."""

    sessions = get_session_service().list_sessions(current_user_id())
    return json_response({"data": sessions_schema.dump(sessions)})
