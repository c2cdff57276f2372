from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from monitoring.models import Device
from monitoring.permissions import IsStaffRole, require_role
from monitoring.serializers.device import (
    DeviceListQuerySerializer,
    DeviceUpdateSerializer,
    DeviceWriteSerializer,
    HelpSerializer,
)
from monitoring.services.commands import run_command
from monitoring.services.consistency import (
    CreateDevice,
    DeleteDevice,
    SetHelpNeeded,
    UpdateDevice,
    get_device,
    get_device_by_external_id,
)
from monitoring.views.common import iso, list_response


def serialize_device(d: Device) -> dict:
    return {
        'id': d.id,
        'id_device': d.id_device,
        'id_gateway': d.id_gateway,
        'room': d.room,
        'id_patient': d.id_patient,
        'patient_name': d.patient_name,
        'battery_level': d.battery_level,
        'help_needed': d.help_needed,
        'alert': d.alert_id,
        'createdAt': iso(d.created_at),
        'updatedAt': iso(d.updated_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def devices_view(request):
    if request.method == 'POST':
        require_role(request.user, 'admin')
        s = DeviceWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        device = run_command(CreateDevice(s.validated_data, actor=request.user))
        return Response(serialize_device(device), status=201)

    q = DeviceListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Device.objects.all()
    if q.validated_data.get('room') is not None:
        qs = qs.filter(room=q.validated_data['room'])
    if q.validated_data['help_needed']:
        qs = qs.filter(help_needed=True)
    return list_response(serialize_device(d) for d in qs)


def _update(request, device: Device) -> Response:
    s = DeviceUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    device = run_command(UpdateDevice(device, s.validated_data, actor=request.user))
    return Response(serialize_device(device))


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsStaffRole])
def device_detail_view(request, pk: int):
    device = get_device(pk)
    if request.method == 'GET':
        return Response(serialize_device(device))
    if request.method == 'DELETE':
        require_role(request.user, 'admin')
        run_command(DeleteDevice(device, actor=request.user))
        return Response(status=204)
    return _update(request, device)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsStaffRole])
def device_by_external_id_view(request, id_device: str):
    """Patch a device addressed by its hardware id."""
    return _update(request, get_device_by_external_id(id_device))


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsStaffRole])
def device_help_view(request, pk: int):
    device = get_device(pk)
    s = HelpSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    device = run_command(SetHelpNeeded(device, s.validated_data['help_needed'], actor=request.user))
    return Response(serialize_device(device))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def device_status_view(request, pk: int):
    device = get_device(pk)
    return Response({'id': device.id, 'battery_level': device.battery_level, 'help_needed': device.help_needed})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def device_battery_view(request, id_device: str):
    device = get_device_by_external_id(id_device)
    return Response({'battery_level': device.battery_level, 'id_device': device.id_device})
