from __future__ import annotations

from django.db.models import Count
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from monitoring.exceptions import Conflict
from monitoring.models import Patient, Room
from monitoring.permissions import IsAdminOrReadOnly
from monitoring.serializers.room import RoomListQuerySerializer, RoomUpdateSerializer, RoomWriteSerializer
from monitoring.services.audit import log_action
from monitoring.services.commands import run_command
from monitoring.services.consistency import DeleteRoom, UpdateRoom, get_room, occupancy
from monitoring.views.common import iso, list_response


def serialize_room(r: Room, occupied: int | None = None) -> dict:
    return {
        'id': r.id,
        'name': r.name,
        'capacity': r.capacity,
        'isActive': r.is_active,
        'occupied': occupancy(r.name) if occupied is None else occupied,
        'createdAt': iso(r.created_at),
        'updatedAt': iso(r.updated_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def rooms_view(request):
    if request.method == 'POST':
        s = RoomWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        if Room.objects.filter(name=s.validated_data['name']).exists():
            raise Conflict(f"Room {s.validated_data['name']} already exists.")
        room = Room.objects.create(**s.validated_data)
        log_action(user=request.user, action='create_room', object_type='room', object_id=room.pk,
                   detail={'name': room.name, 'capacity': room.capacity})
        return Response(serialize_room(room, occupied=0), status=201)

    q = RoomListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = Room.objects.all()
    if vd.get('name') is not None:
        qs = qs.filter(name=vd['name'])
    if vd.get('isActive') is not None:
        qs = qs.filter(is_active=vd['isActive'])

    total = qs.count()
    page, limit = vd['page'], vd['limit']
    start = (page - 1) * limit
    # Occupancy is counted against the room number, not a relation.
    occupied = dict(
        Patient.objects.filter(archived=False, room__isnull=False)
        .order_by()
        .values_list('room')
        .annotate(n=Count('id'))
    )
    rooms = qs.order_by('name')[start:start + limit]
    return list_response(
        (serialize_room(r, occupied=occupied.get(r.name, 0)) for r in rooms),
        pagination={'total': total, 'page': page, 'limit': limit, 'pages': (total + limit - 1) // limit},
    )


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def room_detail_view(request, pk: int):
    room = get_room(pk)
    if request.method == 'GET':
        return Response(serialize_room(room))

    if request.method == 'DELETE':
        cleared = run_command(DeleteRoom(room, actor=request.user))
        return Response({'ok': True, 'patientsCleared': cleared})

    s = RoomUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    room = run_command(UpdateRoom(room, s.validated_data, actor=request.user))
    return Response(serialize_room(room))
