"""
URL mappings for the ward monitoring API.

Paths carry no trailing slash (APPEND_SLASH is off).
Fixed sub-paths (``/device/<id>``, ``/battery/<id>``, ``/delete``...) are
listed before the ``<int:pk>`` routes they would otherwise shadow.
"""
from django.urls import include, path

from .views import alerts, archived, auth, devices, health, patients, rooms, users

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Authentication
    path('api/auth/login', auth.login_view, name='login_view'),
    path('api/auth/refresh', auth.refresh_view, name='refresh_view'),
    path('api/auth/logout', auth.logout_view, name='logout_view'),
    path('api/auth/me', auth.me_view, name='me_view'),
    path('api/auth/change-password', auth.change_password_view, name='change_password_view'),

    # Users
    path('api/users', users.users_view, name='users'),
    path('api/users/<int:pk>', users.user_detail_view, name='user_detail'),

    # Patients
    path('api/patients', patients.patients_view, name='patients'),
    path('api/patients/<int:pk>', patients.patient_detail_view, name='patient_detail'),
    path('api/patients/<int:pk>/archive', patients.patient_archive_view, name='patient_archive'),
    path('api/patients/<int:pk>/assign-device', patients.patient_assign_device_view, name='patient_assign_device'),
    path('api/patients/<int:pk>/unassign-device', patients.patient_unassign_device_view, name='patient_unassign_device'),
    path('api/patients/<int:pk>/assign-room', patients.patient_assign_room_view, name='patient_assign_room'),

    # Devices
    path('api/devices', devices.devices_view, name='devices'),
    path('api/devices/device/<str:id_device>', devices.device_by_external_id_view, name='device_by_external_id'),
    path('api/devices/battery/<str:id_device>', devices.device_battery_view, name='device_battery'),
    path('api/devices/<int:pk>', devices.device_detail_view, name='device_detail'),
    path('api/devices/<int:pk>/help', devices.device_help_view, name='device_help'),
    path('api/devices/<int:pk>/status', devices.device_status_view, name='device_status'),

    # Rooms
    path('api/rooms', rooms.rooms_view, name='rooms'),
    path('api/rooms/<int:pk>', rooms.room_detail_view, name='room_detail'),

    # Alerts
    path('api/alerts', alerts.alerts_view, name='alerts'),
    path('api/alerts/delete', alerts.alerts_delete_all_view, name='alerts_delete_all'),
    path('api/alerts/create-with-device', alerts.alert_create_with_device_view, name='alert_create_with_device'),
    path('api/alerts/resolve-with-device', alerts.alert_resolve_with_device_view, name='alert_resolve_with_device'),
    path('api/alerts/update-battery', alerts.alert_update_battery_view, name='alert_update_battery'),
    path('api/alerts/<int:pk>/resolve', alerts.alert_resolve_view, name='alert_resolve'),

    # Archived patients
    path('api/archived_patients', archived.archived_patients_view, name='archived_patients'),
    path('api/archived_patients/<int:pk>', archived.archived_patient_detail_view, name='archived_patient_detail'),
]
