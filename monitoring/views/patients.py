"""
Patient management views.

Any staff member may read and edit patients; only admins create or
delete them.  Every mutation goes through a command from
:mod:`monitoring.services.consistency` so linked devices and rooms stay
in step.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from monitoring.models import Device, Patient
from monitoring.permissions import IsStaffRole, require_role
from monitoring.serializers.patient import (
    ArchiveSerializer,
    AssignDeviceSerializer,
    AssignRoomSerializer,
    PatientCreateSerializer,
    PatientFieldsSerializer,
    PatientListQuerySerializer,
)
from monitoring.services.commands import run_command
from monitoring.services.consistency import (
    ArchivePatient,
    AssignDevice,
    AssignRoom,
    CreatePatient,
    DeletePatient,
    UnassignDevice,
    UpdatePatient,
    get_patient,
)
from monitoring.views.archived import serialize_archived
from monitoring.views.common import iso, list_response
from monitoring.views.devices import serialize_device


def serialize_patient(p: Patient) -> dict:
    return {
        'id': p.id,
        'id_patient': p.id_patient,
        'id_device': p.id_device,
        'name': p.name,
        'room': p.room,
        'illness': p.illness,
        'age': p.age,
        'status': p.status,
        'notes': p.notes,
        'archived': p.archived,
        'createdAt': iso(p.created_at),
        'updatedAt': iso(p.updated_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patients_view(request):
    if request.method == 'POST':
        require_role(request.user, 'admin')
        s = PatientCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        patient = run_command(CreatePatient(s.validated_data, actor=request.user))
        return Response(serialize_patient(patient), status=201)

    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = Patient.objects.all()
    if not vd.get('include_archived'):
        qs = qs.filter(archived=False)
    if vd.get('room') is not None:
        qs = qs.filter(room=vd['room'])
    if vd.get('status'):
        qs = qs.filter(status__iexact=vd['status'])
    if vd.get('q'):
        term = vd['q'].strip()
        qs = qs.filter(Q(name__icontains=term) | Q(id_patient__icontains=term))
    return list_response(serialize_patient(p) for p in qs)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_detail_view(request, pk: int):
    patient = get_patient(pk)
    if request.method == 'GET':
        return Response(serialize_patient(patient))

    if request.method == 'DELETE':
        require_role(request.user, 'admin')
        run_command(DeletePatient(patient, actor=request.user))
        return Response(status=204)

    s = PatientFieldsSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    patient = run_command(UpdatePatient(patient, s.validated_data, actor=request.user))
    return Response(serialize_patient(patient))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_archive_view(request, pk: int):
    """Copy the patient to the archive; returns the archived record."""
    patient = get_patient(pk)
    s = ArchiveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    archived = run_command(
        ArchivePatient(patient, status=s.validated_data.get('status') or None, actor=request.user)
    )
    return Response(serialize_archived(archived), status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_assign_device_view(request, pk: int):
    patient = get_patient(pk)
    s = AssignDeviceSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient, device = run_command(AssignDevice(patient, s.validated_data['id_device'], actor=request.user))
    return Response({'patient': serialize_patient(patient), 'device': serialize_device(device)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_unassign_device_view(request, pk: int):
    patient = get_patient(pk)
    patient, device = run_command(UnassignDevice(patient, actor=request.user))
    return Response({
        'patient': serialize_patient(patient),
        'device': serialize_device(device) if device else None,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_assign_room_view(request, pk: int):
    patient = get_patient(pk)
    s = AssignRoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = run_command(AssignRoom(patient, s.validated_data['room'], actor=request.user))
    device = Device.objects.filter(id_device=patient.id_device).first() if patient.id_device else None
    return Response({
        'patient': serialize_patient(patient),
        'device': serialize_device(device) if device else None,
    })
