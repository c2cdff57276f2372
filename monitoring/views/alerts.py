"""
Alert endpoints.  Gateways report through ``create-with-device``,
``resolve-with-device`` and ``update-battery``; staff list and resolve
alerts from the dashboard.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from monitoring.models import Alert
from monitoring.permissions import IsAdminRole, IsStaffRole
from monitoring.serializers.alert import (
    AlertListQuerySerializer,
    AlertWithDeviceSerializer,
    AlertWriteSerializer,
    BatterySerializer,
    DeviceRefSerializer,
)
from monitoring.services import alerts as alert_service
from monitoring.services.commands import run_command
from monitoring.views.common import iso, list_response
from monitoring.views.devices import serialize_device


def serialize_alert(a: Alert) -> dict:
    return {
        'id': a.id,
        'id_device': a.id_device,
        'id_patient': a.id_patient,
        'patient_name': a.patient_name,
        'timestamp': iso(a.timestamp),
        'status': a.status,
        'message': a.message,
        'type': a.type,
        'history': a.history,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def alerts_view(request):
    if request.method == 'POST':
        s = AlertWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        alert = run_command(alert_service.CreateAlert(s.validated_data, actor=request.user))
        return Response(serialize_alert(alert), status=201)

    q = AlertListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Alert.objects.all()
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    if q.validated_data.get('deviceId'):
        qs = qs.filter(id_device=q.validated_data['deviceId'])
    return list_response(serialize_alert(a) for a in qs)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def alerts_delete_all_view(request):
    return Response({'ok': True, 'deleted': alert_service.delete_all_alerts()})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsStaffRole])
def alert_resolve_view(request, pk: int):
    alert = run_command(alert_service.ResolveAlert(pk, actor=request.user))
    return Response(serialize_alert(alert))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def alert_create_with_device_view(request):
    s = AlertWithDeviceSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    alert, device = run_command(alert_service.CreateAlertWithDevice(
        vd['id_device'], vd.get('alertData'), vd.get('deviceData'), actor=request.user,
    ))
    return Response({'alert': serialize_alert(alert), 'device': serialize_device(device)}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def alert_resolve_with_device_view(request):
    s = DeviceRefSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    alert, device = run_command(
        alert_service.ResolveAlertWithDevice(s.validated_data['id_device'], actor=request.user)
    )
    return Response({'alert': serialize_alert(alert), 'device': serialize_device(device)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def alert_update_battery_view(request):
    s = BatterySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    device = run_command(alert_service.UpdateBattery(
        s.validated_data['id_device'], s.validated_data['battery_level'], actor=request.user,
    ))
    return Response({'device': serialize_device(device)})
