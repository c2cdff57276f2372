from django.conf import settings
from rest_framework import serializers


class RoomWriteSerializer(serializers.Serializer):
    name = serializers.IntegerField(min_value=1, max_value=9999)
    capacity = serializers.IntegerField(min_value=1, required=False, default=1)
    is_active = serializers.BooleanField(required=False, default=True)


class RoomUpdateSerializer(serializers.Serializer):
    name = serializers.IntegerField(min_value=1, max_value=9999, required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)
    is_active = serializers.BooleanField(required=False)


class RoomListQuerySerializer(serializers.Serializer):
    name = serializers.IntegerField(required=False)
    isActive = serializers.BooleanField(required=False, allow_null=True, default=None)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=settings.ROOMS_MAX_PAGE_SIZE, default=10)
