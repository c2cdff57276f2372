"""
Bearer token authentication for the API.

Access tokens are stateless: the user id and role are read from the
token's claims and the database is not consulted.  A role change only
takes effect once the holder obtains a new access token.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import AUTH_HEADER_TYPE_BYTES, JWTStatelessUserAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.models import TokenUser

from monitoring.exceptions import Internal, Unauthorized


def require_jwt_secret() -> None:
    if not getattr(settings, 'JWT_SECRET', ''):
        raise Internal('Server configuration error.', cause='JWT_SECRET is not configured')


class RoleTokenUser(TokenUser):
    """Principal built from token claims, exposing ``id`` and ``role``."""

    @property
    def role(self) -> str | None:
        return self.token.get('role')


class BearerTokenAuthentication(JWTStatelessUserAuthentication):

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        parts = header.split()
        if len(parts) != 2 or parts[0] not in AUTH_HEADER_TYPE_BYTES:
            raise Unauthorized('Authentication token missing or invalid format.')

        require_jwt_secret()
        try:
            validated_token = self.get_validated_token(parts[1])
        except (InvalidToken, TokenError) as exc:
            raise Unauthorized('Invalid or expired token.') from exc
        return self.get_user(validated_token), validated_token
