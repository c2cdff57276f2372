"""
Staff account endpoints.  Registration is open; everything else requires
the account itself or an admin.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from monitoring.exceptions import Forbidden, NotFound
from monitoring.models import User
from monitoring.permissions import IsAdminRole, IsSelfOrAdmin, require_role
from monitoring.serializers.auth import RegisterSerializer, UserUpdateSerializer
from monitoring.services import auth as auth_service
from monitoring.views.common import iso, list_response


def serialize_user(u: User) -> dict:
    return {
        'id': u.id,
        'email': u.email,
        'username': u.username,
        'role': u.role,
        'createdAt': iso(u.date_joined),
        'updatedAt': iso(u.updated_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def users_view(request):
    if request.method == 'POST':
        s = RegisterSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        user = auth_service.register(**s.validated_data)
        return Response(serialize_user(user), status=201)

    if not IsAuthenticated().has_permission(request, None):
        raise NotAuthenticated()
    require_role(request.user, 'admin')
    return list_response(serialize_user(u) for u in User.objects.order_by('id'))


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_detail_view(request, pk: int):
    user = User.objects.filter(pk=pk).first()
    if user is None:
        # Hide existence from non-admins.
        if not IsAdminRole().has_permission(request, None):
            raise Forbidden()
        raise NotFound('User not found')
    if not IsSelfOrAdmin().has_object_permission(request, None, user):
        raise Forbidden()

    if request.method == 'GET':
        return Response(serialize_user(user))

    s = UserUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = auth_service.update_account(user, **s.validated_data)
    return Response(serialize_user(user))
