"""
Archived patients are read-only snapshots written by the archive
workflow; they can be listed, inspected, imported and deleted.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from monitoring.exceptions import NotFound
from monitoring.models import ArchivedPatient
from monitoring.permissions import IsStaffRole, require_role
from monitoring.serializers.patient import ArchivedPatientSerializer
from monitoring.services.audit import log_action
from monitoring.views.common import iso, list_response


def serialize_archived(a: ArchivedPatient) -> dict:
    return {
        'id': a.id,
        'id_patient': a.id_patient,
        'id_device': a.id_device,
        'name': a.name,
        'room': a.room,
        'illness': a.illness,
        'age': a.age,
        'status': a.status,
        'notes': a.notes,
        'createdAt': iso(a.created_at),
        'archivedAt': iso(a.archived_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def archived_patients_view(request):
    if request.method == 'POST':
        s = ArchivedPatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = dict(s.validated_data)
        archived_at = vd.pop('archivedAt', None) or timezone.now()
        archived = ArchivedPatient.objects.create(archived_at=archived_at, **vd)
        log_action(user=request.user, action='import_archived_patient', object_type='archived_patient',
                   object_id=archived.pk, detail={'id_patient': archived.id_patient})
        return Response(serialize_archived(archived), status=201)

    qs = ArchivedPatient.objects.all()
    if request.query_params.get('id_patient'):
        qs = qs.filter(id_patient=request.query_params['id_patient'])
    return list_response(serialize_archived(a) for a in qs)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsStaffRole])
def archived_patient_detail_view(request, pk: int):
    archived = ArchivedPatient.objects.filter(pk=pk).first()
    if archived is None:
        raise NotFound('Archived patient not found')
    if request.method == 'GET':
        return Response(serialize_archived(archived))

    require_role(request.user, 'admin')
    log_action(user=request.user, action='delete_archived_patient', object_type='archived_patient',
               object_id=archived.pk, detail={'id_patient': archived.id_patient})
    archived.delete()
    return Response(status=204)
