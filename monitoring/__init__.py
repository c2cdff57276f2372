"""Ward monitoring application.

Models, serializers, services, views and realtime consumers for the
patient/room/device monitoring API.
"""
