import logging
from typing import Optional
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.db import IntegrityError, transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from ninja_jwt.tokens import RefreshToken
from ninja_jwt.exceptions import TokenError

from notifications.dispatcher import EmailDispatcher, EmailDispatchError, get_dispatcher, redirect_url
from notifications.emails import password_reset_html
from timetomeet.exceptions import AuthenticationFailed, InvalidRequest
from .models import Profile

logger = logging.getLogger(__name__)
UserModel = get_user_model()

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_or_create_profile(user) -> Profile:
    profile, created = Profile.objects.get_or_create(user=user, defaults={
        "email": user.email or user.username,
        "full_name": user.get_full_name(),
    })
    if created:
        logger.info(f"Created profile for user {user.pk} on first access.")
    return profile


def find_user_by_email(email: str):
    return UserModel.objects.filter(email__iexact=normalize_email(email)).first()


def display_name(user) -> str:
    profile = Profile.objects.filter(user=user).only('full_name').first()
    if profile and profile.full_name:
        return profile.full_name
    return user.get_full_name() or user.email


def sign_up(email: str, password: str, full_name: str = ""):
    email = normalize_email(email)
    if not email or not password:
        raise InvalidRequest("Email and password are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequest(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
    if UserModel.objects.filter(username__iexact=email).exists() or find_user_by_email(email):
        raise InvalidRequest("User already registered")

    try:
        with transaction.atomic():
            user = UserModel.objects.create_user(username=email, email=email, password=password)
            Profile.objects.create(user=user, email=email, full_name=full_name.strip())
    except IntegrityError as e:
        logger.warning(f"Sign-up race for {email}: {e}")
        raise InvalidRequest("User already registered") from e

    logger.info(f"Registered user {user.pk}.")
    return user


def sign_in(email: str, password: str) -> dict:
    email = normalize_email(email)
    if not email or not password:
        raise InvalidRequest("Email and password are required")

    user = authenticate(username=email, password=password)
    if user is None:
        logger.info("Sign-in rejected: invalid credentials.")
        raise AuthenticationFailed("Invalid login credentials")

    profile = get_or_create_profile(user)
    refresh = RefreshToken.for_user(user)
    logger.info(f"User {user.pk} signed in.")
    return {"access": str(refresh.access_token), "refresh": str(refresh), "profile": profile}


def sign_out(refresh_token: str) -> None:
    try:
        RefreshToken(refresh_token).blacklist()
    except TokenError as e:
        raise InvalidRequest(str(e)) from e


def request_password_reset(email: str, dispatcher: Optional[EmailDispatcher] = None) -> bool:
    """
    Emails a reset link when the account exists and email sending is configured.
    Returns whether an email went out; callers must not reveal this to the client.
    """
    user = find_user_by_email(email)
    if user is None:
        logger.info("Password reset requested for an unknown email.")
        return False

    dispatcher = dispatcher or get_dispatcher()
    if not dispatcher.is_configured:
        logger.info("Email service not configured, skipping password reset email.")
        return False

    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    link = redirect_url(f"?page=reset-password&uid={uid}&token={token}")
    try:
        dispatcher.send(user.email, "Reset Your Password - TimeToMeet", password_reset_html(link))
    except EmailDispatchError as e:
        logger.error(f"Failed to send password reset email to user {user.pk}: {e}")
        return False
    return True


def confirm_password_reset(uid: str, token: str, password: str, confirm_password: str):
    if password != confirm_password:
        raise InvalidRequest("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    try:
        user = UserModel.objects.get(pk=force_str(urlsafe_base64_decode(uid)))
    except (TypeError, ValueError, OverflowError, UserModel.DoesNotExist):
        user = None
    if user is None or not default_token_generator.check_token(user, token):
        raise InvalidRequest("Invalid or expired password reset link")

    user.set_password(password)
    user.save(update_fields=['password'])
    logger.info(f"Password reset completed for user {user.pk}.")
    return user
