import logging
from functools import wraps

from django.conf import settings
from django.contrib.auth.models import User

from healthdecode.exceptions import AuthError

from . import tokens

logger = logging.getLogger(__name__)


def get_token_from_request(request):
    token = request.COOKIES.get(settings.AUTH_TOKEN_COOKIE)
    if token:
        return token
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def get_user_from_request(request):
    claims = tokens.verify(get_token_from_request(request))
    if not claims or 'id' not in claims:
        return None
    return User.objects.filter(pk=claims['id'], is_active=True).first()


def token_required(view_func):
    """Resolves the owner from the request token, raising AuthError when there is none."""

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        user = get_user_from_request(request)
        if user is None:
            logger.debug("AUTH: no valid token for %s %s", request.method, request.path)
            raise AuthError()
        request.user = user
        return view_func(request, *args, **kwargs)

    return _wrapped


def set_auth_cookie(response, user):
    response.set_cookie(
        settings.AUTH_TOKEN_COOKIE,
        tokens.issue_session_token(user),
        max_age=settings.AUTH_TOKEN_MAX_AGE,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite='Strict',
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(settings.AUTH_TOKEN_COOKIE, samesite='Strict')
    return response
