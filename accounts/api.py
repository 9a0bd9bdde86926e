import logging
from ninja import Router
from ninja_jwt.authentication import JWTAuth
from timetomeet.exceptions import ServiceError
from . import services
from .schemas import (ProfileSchemaOut, ProfileSchemaUpdate, SignUpSchemaIn, SignInSchemaIn, SessionSchemaOut,
                      SignOutSchemaIn, PasswordResetRequestIn, PasswordResetConfirmIn, MessageOut, ErrorDetail)

router = Router(tags=["accounts"])
logger = logging.getLogger(__name__)

PASSWORD_RESET_SENT = "If an account exists for that email, a password reset link has been sent."


@router.post("/sign-up/", response={201: MessageOut, 400: ErrorDetail}, summary="Sign Up",
             description="""
             Registers a new account using an email address and password.

             **Details:**
             - No authentication required.
             - The email address doubles as the login name and is stored lower-cased.
             - A `Profile` row is created alongside the account with the optional `full_name`.

             **On Success:** Returns `201 Created` with a confirmation message.
             **On Failure:** Returns `400 Bad Request` when a field is missing, the password is shorter than 6 characters,
              or the email is already registered. The message is shown to the user verbatim.
             """
             )
def sign_up(request, data: SignUpSchemaIn):
    try:
        services.sign_up(data.email, data.password, data.full_name or "")
        return 201, {"detail": "Account created. You can now sign in."}
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Unexpected error during sign-up: {e}", exc_info=True)
        return 400, {"detail": "An unexpected error occurred"}


@router.post("/sign-in/", response={200: SessionSchemaOut, 400: ErrorDetail, 401: ErrorDetail}, summary="Sign In",
             description="""
             Exchanges email and password for a JWT access/refresh pair.

             On the first successful sign-in the user's `Profile` is created if it does not exist yet.
             Invalid credentials return `401 Unauthorized` with `Invalid login credentials`.
             """
             )
def sign_in(request, data: SignInSchemaIn):
    try:
        return 200, services.sign_in(data.email, data.password)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Unexpected error during sign-in: {e}", exc_info=True)
        return 400, {"detail": "An unexpected error occurred"}


@router.post("/sign-out/", response={204: None, 400: ErrorDetail}, auth=JWTAuth(), summary="Sign Out",
             description="Blacklists the supplied refresh token so it can no longer be used to mint access tokens.")
def sign_out(request, data: SignOutSchemaIn):
    try:
        services.sign_out(data.refresh)
        logger.info(f"User {request.auth.pk} signed out.")
        return 204, None
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/password-reset/", response={200: MessageOut}, summary="Request Password Reset",
             description="""
             Sends a password reset link to the given email address.

             **Details:**
             - No authentication required.
             - Always returns `200 OK` with the same message so the endpoint cannot be used to discover registered emails.
             - The link points at `SITE_URL` (or `DEV_REDIRECT_URL` when set) and carries `uid` and `token` query parameters.
             - Nothing is sent when the email service is not configured.
             """
             )
def request_password_reset(request, data: PasswordResetRequestIn):
    try:
        services.request_password_reset(data.email)
    except Exception as e:
        logger.error(f"Unexpected error while requesting password reset: {e}", exc_info=True)
    return 200, {"detail": PASSWORD_RESET_SENT}


@router.post("/password-reset/confirm/", response={200: MessageOut, 400: ErrorDetail}, summary="Confirm Password Reset")
def confirm_password_reset(request, data: PasswordResetConfirmIn):
    try:
        services.confirm_password_reset(data.uid, data.token, data.password, data.confirm_password)
        return 200, {"detail": "Password updated. You can now sign in with your new password."}
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.get("/me/", response=ProfileSchemaOut, auth=JWTAuth(), summary="Get My Profile")
def get_my_profile(request):
    return services.get_or_create_profile(request.auth)


@router.put("/me/", response={200: ProfileSchemaOut, 400: ErrorDetail}, auth=JWTAuth(), summary="Update My Profile")
def update_my_profile(request, data: ProfileSchemaUpdate):
    profile = services.get_or_create_profile(request.auth)
    profile.full_name = data.full_name.strip()
    profile.save(update_fields=['full_name', 'updated_at'])
    return 200, profile
