# accounts/views.py

import logging

from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from healthdecode.exceptions import AuthError, ValidationError
from healthdecode.http import parse_json_body

from . import tokens
from .auth import clear_auth_cookie, set_auth_cookie, token_required

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
FORGOT_PASSWORD_REPLY = "If an account with that email exists, a reset link has been sent."


def serialize_user(user):
    return {
        "id": user.pk,
        "name": user.get_full_name(),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
    }


def _string_field(data, name, strip=True):
    """Returns the stripped string value of a body field; missing or null is "", other types are rejected."""
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value.strip() if strip else value


def _clean_email(data):
    return _string_field(data, "email").lower()


@csrf_exempt
@require_POST
def signup_api(request):
    data = parse_json_body(request)
    first_name = _string_field(data, "first_name")
    last_name = _string_field(data, "last_name")
    email = _clean_email(data)
    password = _string_field(data, "password", strip=False)

    if not first_name or not last_name or not email or not password:
        raise ValidationError("All fields are required")
    if "@" not in email:
        raise ValidationError("Please enter a valid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if User.objects.filter(email__iexact=email).exists():
        raise ValidationError("User already exists with this email")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=email, email=email, password=password,
                first_name=first_name, last_name=last_name,
            )
    except IntegrityError:
        raise ValidationError("User already exists with this email")

    logger.info("ACCOUNTS: new user %s signed up", user.pk)
    response = JsonResponse({"status": "success", "message": "User created successfully",
                             "user": serialize_user(user)}, status=201)
    return set_auth_cookie(response, user)


@csrf_exempt
@require_POST
def login_api(request):
    data = parse_json_body(request)
    email = _clean_email(data)
    password = _string_field(data, "password", strip=False)

    if not email or not password:
        raise ValidationError("Email and password are required")

    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user is None or not user.check_password(password):
        logger.info("ACCOUNTS: failed login attempt")
        raise AuthError("Invalid email or password")

    logger.info("ACCOUNTS: user %s logged in", user.pk)
    response = JsonResponse({"status": "success", "message": "Login successful", "user": serialize_user(user)})
    return set_auth_cookie(response, user)


@csrf_exempt
@require_POST
def logout_api(request):
    response = JsonResponse({"status": "success", "message": "Logged out successfully"})
    return clear_auth_cookie(response)


@require_GET
@token_required
def me_api(request):
    return JsonResponse({"status": "success", "user": serialize_user(request.user)})


@csrf_exempt
@require_POST
def forgot_password_api(request):
    data = parse_json_body(request)
    email = _clean_email(data)
    if not email:
        raise ValidationError("Email is required")

    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user is None:
        # Same reply either way so account existence is not revealed
        return JsonResponse({"status": "success", "message": FORGOT_PASSWORD_REPLY})

    reset_link = f"{settings.APP_BASE_URL.rstrip('/')}/reset-password?token={tokens.issue_reset_token(user)}"
    html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #2563eb;">Reset Your Password</h2>
          <p>Hello {user.get_full_name() or user.email},</p>
          <p>We received a request to reset your password for your HealthDecode account.</p>
          <p><a href="{reset_link}">Reset Password</a></p>
          <p>If you didn't request this password reset, please ignore this email.</p>
          <p>This link will expire in 15 minutes for security reasons.</p>
        </div>
    """
    send_mail(
        subject="Reset your HealthDecode password",
        message=f"Reset your password using this link (valid for 15 minutes): {reset_link}",
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
        html_message=html_body,
    )
    logger.info("ACCOUNTS: password reset email sent to user %s", user.pk)
    return JsonResponse({"status": "success", "message": FORGOT_PASSWORD_REPLY})


@csrf_exempt
@require_POST
def reset_password_api(request):
    data = parse_json_body(request)
    password = _string_field(data, "password", strip=False)
    claims = tokens.verify_reset_token(_string_field(data, "token"))

    if claims is None:
        raise ValidationError("This reset link is invalid or has expired")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    user = User.objects.filter(pk=claims.get("id"), is_active=True).first()
    if user is None or not tokens.reset_token_matches(user, claims):
        raise ValidationError("This reset link is invalid or has expired")

    user.set_password(password)
    user.save(update_fields=["password"])
    logger.info("ACCOUNTS: password reset for user %s", user.pk)
    return JsonResponse({"status": "success", "message": "Password updated. Please log in."})
