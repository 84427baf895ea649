import logging
from datetime import datetime, timezone

from django.conf import settings
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

logger = logging.getLogger(__name__)


def set_auth_cookie(response, key, token):
    """Write a JWT into an httpOnly cookie that expires with the token."""
    expires = datetime.fromtimestamp(token['exp'], tz=timezone.utc)
    response.set_cookie(
        key=key,
        value=str(token),
        httponly=True,
        secure=getattr(settings, 'AUTH_COOKIE_SECURE', not settings.DEBUG),
        samesite=getattr(settings, 'AUTH_COOKIE_SAMESITE', 'Lax'),
        expires=expires,
        path=getattr(settings, 'AUTH_COOKIE_PATH', '/'),
        domain=getattr(settings, 'AUTH_COOKIE_DOMAIN', None),
    )


class JWTAuthCookieMiddleware:
    """
    Read JWTs from httpOnly cookies and expose them as a Bearer header.

    An expired access cookie is replaced from a valid refresh cookie and the new
    access token is written back on the response. An explicit Authorization
    header from the client always wins.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.access_cookie = getattr(settings, 'AUTH_COOKIE_ACCESS', 'access_token')
        self.refresh_cookie = getattr(settings, 'AUTH_COOKIE_REFRESH', 'refresh_token')

    def __call__(self, request):
        if request.META.get('HTTP_AUTHORIZATION'):
            return self.get_response(request)

        access_raw = request.COOKIES.get(self.access_cookie)
        refresh_raw = request.COOKIES.get(self.refresh_cookie)

        if access_raw:
            try:
                AccessToken(access_raw)
                request.META['HTTP_AUTHORIZATION'] = f'Bearer {access_raw}'
                return self.get_response(request)
            except TokenError:
                pass

        if refresh_raw:
            try:
                new_access = RefreshToken(refresh_raw).access_token
            except TokenError:
                logger.debug("Refresh cookie rejected; continuing unauthenticated")
            else:
                request.META['HTTP_AUTHORIZATION'] = f'Bearer {new_access}'
                response = self.get_response(request)
                set_auth_cookie(response, self.access_cookie, new_access)
                return response

        return self.get_response(request)
