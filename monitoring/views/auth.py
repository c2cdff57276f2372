"""
Authentication endpoints: login, token refresh, logout, current user
and password change.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from monitoring.exceptions import Unauthorized
from monitoring.models import User
from monitoring.serializers.auth import ChangePasswordSerializer, LoginSerializer, LogoutSerializer, RefreshSerializer
from monitoring.services import auth as auth_service
from monitoring.views.common import client_ip
from monitoring.views.users import serialize_user


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    tokens = auth_service.login(
        s.validated_data['email'], s.validated_data['password'], ip=client_ip(request)
    )
    return Response(tokens, status=200)

# ScopedRateThrottle reads throttle_scope from the view instance
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def refresh_view(request):
    """Exchange ``refreshToken`` for a fresh ``accessToken``."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(auth_service.refresh_access(s.validated_data['refreshToken']))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or all of the caller's tokens."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    count = auth_service.logout(request.user, s.validated_data.get('refreshToken') or None)
    return Response({'ok': True, 'blacklisted': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    user = User.objects.filter(pk=request.user.id, is_active=True).first()
    if user is None:
        raise Unauthorized('Invalid or expired token.')
    return Response(serialize_user(user))


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    auth_service.change_password(
        request.user, s.validated_data['currentPassword'], s.validated_data['newPassword']
    )
    return Response(status=204)
