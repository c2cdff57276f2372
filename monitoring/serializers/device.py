from rest_framework import serializers


class DeviceWriteSerializer(serializers.Serializer):
    id_device = serializers.CharField(max_length=64)
    id_gateway = serializers.CharField(max_length=64, required=False, allow_blank=True)
    room = serializers.IntegerField(min_value=1, max_value=9999, required=False, allow_null=True)
    id_patient = serializers.CharField(max_length=64, required=False, allow_blank=True)
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    battery_level = serializers.IntegerField(min_value=0, max_value=100, required=False)
    help_needed = serializers.BooleanField(required=False)


class DeviceUpdateSerializer(DeviceWriteSerializer):
    id_device = serializers.CharField(max_length=64, required=False)


class HelpSerializer(serializers.Serializer):
    help_needed = serializers.BooleanField()



class DeviceListQuerySerializer(serializers.Serializer):
    room = serializers.IntegerField(required=False)
    help_needed = serializers.BooleanField(required=False, default=False)
