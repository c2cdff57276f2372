"""
Django admin registrations for the monitoring models.

Useful during development for inspecting patients, devices and the
audit trail under ``/admin/``.
"""

from django.contrib import admin

from .models import Alert, ArchivedPatient, AuditEvent, Device, Patient, Room, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'role', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'email')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('name', 'capacity', 'is_active', 'updated_at')
    list_filter = ('is_active',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id_patient', 'name', 'room', 'id_device', 'status', 'archived')
    list_filter = ('archived', 'status')
    search_fields = ('id_patient', 'name')


@admin.register(ArchivedPatient)
class ArchivedPatientAdmin(admin.ModelAdmin):
    list_display = ('id_patient', 'name', 'status', 'archived_at')
    search_fields = ('id_patient', 'name')


@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    list_display = ('id_device', 'id_patient', 'room', 'battery_level', 'help_needed')
    list_filter = ('help_needed',)
    search_fields = ('id_device', 'id_patient')


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'id_device', 'type', 'status', 'timestamp')
    list_filter = ('status', 'type')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
