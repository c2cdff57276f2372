import bleach
from rest_framework import serializers


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class PatientFieldsSerializer(serializers.Serializer):
    """Editable patient fields; every field optional for partial updates."""
    id_device = serializers.CharField(max_length=64, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False)
    room = serializers.IntegerField(min_value=1, max_value=9999, required=False, allow_null=True)
    illness = serializers.CharField(max_length=255, required=False, allow_blank=True)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    status = serializers.CharField(max_length=64, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_name(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Name is required.')
        return v

    def validate_illness(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)

    def validate_status(self, v):
        return _clean(v) or 'Hospitalized'


class PatientCreateSerializer(PatientFieldsSerializer):
    id_patient = serializers.CharField(max_length=64, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255)


class PatientListQuerySerializer(serializers.Serializer):
    room = serializers.IntegerField(required=False)
    status = serializers.CharField(required=False)
    q = serializers.CharField(required=False, allow_blank=True)
    include_archived = serializers.BooleanField(required=False, default=False)


class ArchiveSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_status(self, v):
        return _clean(v)


class AssignDeviceSerializer(serializers.Serializer):
    id_device = serializers.CharField(max_length=64)


class AssignRoomSerializer(serializers.Serializer):
    room = serializers.IntegerField(min_value=1, max_value=9999, allow_null=True)


class ArchivedPatientSerializer(PatientFieldsSerializer):
    id_patient = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255)
    archivedAt = serializers.DateTimeField(required=False)
