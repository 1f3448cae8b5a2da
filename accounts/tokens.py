# accounts/tokens.py
#
# Signed, timestamped tokens built on django.core.signing. Session tokens
# travel in the ``token`` cookie, reset tokens in the emailed link.

import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core import signing
from django.utils.crypto import constant_time_compare, salted_hmac

logger = logging.getLogger(__name__)

SESSION_SALT = 'healthdecode.accounts.session'
RESET_SALT = 'healthdecode.accounts.password-reset'


def issue(claims: Dict[str, Any], salt: str = SESSION_SALT) -> str:
    return signing.dumps(claims, salt=salt, compress=True)


def verify(token: Optional[str], salt: str = SESSION_SALT, max_age: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """Returns the claims of a valid token, or None if it is missing, tampered with or expired."""
    if not token:
        return None
    if max_age is None:
        max_age = settings.AUTH_TOKEN_MAX_AGE
    try:
        claims = signing.loads(token, salt=salt, max_age=max_age)
    except signing.SignatureExpired:
        logger.info("TOKENS: expired token rejected")
        return None
    except signing.BadSignature:
        logger.warning("TOKENS: invalid token rejected")
        return None
    return claims if isinstance(claims, dict) else None


def issue_session_token(user) -> str:
    return issue({"id": user.pk, "email": user.email, "name": user.get_full_name()})


def password_fingerprint(user) -> str:
    # Changes whenever the password hash changes, so a used reset link stops working
    return salted_hmac(RESET_SALT, user.password).hexdigest()[:20]


def issue_reset_token(user) -> str:
    return issue({"id": user.pk, "pw": password_fingerprint(user)}, salt=RESET_SALT)


def reset_token_matches(user, claims: Dict[str, Any]) -> bool:
    return constant_time_compare(claims.get("pw") or "", password_fingerprint(user))


def verify_reset_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    return verify(token, salt=RESET_SALT, max_age=settings.PASSWORD_RESET_TOKEN_MAX_AGE)
