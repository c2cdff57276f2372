import bleach
from rest_framework import serializers

from monitoring.serializers.device import DeviceUpdateSerializer


class AlertWriteSerializer(serializers.Serializer):
    id_device = serializers.CharField(max_length=64, required=False, allow_blank=True)
    id_patient = serializers.CharField(max_length=64, required=False, allow_blank=True)
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    timestamp = serializers.DateTimeField(required=False)
    message = serializers.CharField(max_length=500, required=False, allow_blank=True)
    type = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_message(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class AlertListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['open', 'resolved'], required=False)
    deviceId = serializers.CharField(required=False)


class AlertWithDeviceSerializer(serializers.Serializer):
    id_device = serializers.CharField(max_length=64)
    alertData = AlertWriteSerializer(required=False)
    deviceData = serializers.DictField(required=False)

    def validate_deviceData(self, v):
        s = DeviceUpdateSerializer(data=v)
        s.is_valid(raise_exception=True)
        return dict(s.validated_data)


class DeviceRefSerializer(serializers.Serializer):
    id_device = serializers.CharField(max_length=64)


class BatterySerializer(serializers.Serializer):
    id_device = serializers.CharField(max_length=64)
    battery_level = serializers.IntegerField(min_value=0, max_value=100)
