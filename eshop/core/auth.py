"""
Shared-secret authentication for the admin back-office.

The admin token is accepted from the session cookie set by the login view,
from the legacy ``adminToken`` cookie, or from an ``Authorization: Bearer``
header.
"""
import hmac
import logging

from django.conf import settings
from rest_framework.authentication import BaseAuthentication
from rest_framework.permissions import BasePermission

logger = logging.getLogger(__name__)


class AdminPrincipal:
    """The single back-office identity behind the shared secret"""
    username = 'admin'
    is_authenticated = True
    is_active = True

    def __str__(self):
        return self.username


def token_matches(candidate):
    expected = settings.ADMIN_TOKEN
    if not candidate or not expected:
        return False
    return hmac.compare_digest(str(candidate), str(expected))


def password_matches(candidate):
    expected = settings.ADMIN_PASSWORD
    if not candidate or not expected:
        return False
    return hmac.compare_digest(str(candidate), str(expected))


def get_request_token(request):
    """Return the admin token presented by the request, or None"""
    for cookie_name in (settings.ADMIN_COOKIE_NAME, settings.ADMIN_LEGACY_COOKIE_NAME):
        value = request.COOKIES.get(cookie_name)
        if value:
            return value

    header = request.META.get('HTTP_AUTHORIZATION', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


class AdminTokenAuthentication(BaseAuthentication):
    """Authenticate requests carrying the admin shared secret"""

    def authenticate(self, request):
        token = get_request_token(request)
        if token is None:
            return None
        if not token_matches(token):
            logger.warning(f"Rejected admin token from {request.META.get('REMOTE_ADDR')}")
            return None
        return AdminPrincipal(), token

    def authenticate_header(self, request):
        # Makes DRF answer 401 instead of 403 for missing credentials
        return 'Bearer realm="admin"'


class IsShopAdmin(BasePermission):
    message = 'Unauthorized'

    def has_permission(self, request, view):
        return isinstance(request.user, AdminPrincipal)
