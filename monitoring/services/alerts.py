"""
Alert workflows driven by gateway telemetry.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.utils import timezone

from monitoring.exceptions import NotFound
from monitoring.models import Alert, Device, Patient
from monitoring.realtime.registry import broadcast_device_update
from monitoring.services.commands import Command
from monitoring.services.consistency import DEVICE_FIELDS, AssignDevice, get_device_by_external_id

logger = logging.getLogger(__name__)


def _history_entry(status: str, when=None) -> dict:
    return {'status': status, 'timestamp': (when or timezone.now()).isoformat()}


def battery_help_needed(battery_level: int) -> bool:
    """Below the threshold a device needs help; at or above it the flag clears."""
    return battery_level < settings.LOW_BATTERY_THRESHOLD


def open_alert(data: dict) -> Alert:
    timestamp = data.pop('timestamp', None) or timezone.now()
    alert = Alert(timestamp=timestamp, **data)
    alert.status = Alert.STATUS_OPEN
    alert.history = [_history_entry(Alert.STATUS_OPEN, timestamp)]
    alert.save()
    return alert


def resolve(alert: Alert) -> Alert:
    if alert.status == Alert.STATUS_RESOLVED:
        return alert
    alert.status = Alert.STATUS_RESOLVED
    alert.history = [*alert.history, _history_entry(Alert.STATUS_RESOLVED)]
    alert.save(update_fields=['status', 'history'])
    Device.objects.filter(alert=alert).update(alert=None, updated_at=timezone.now())
    return alert


class CreateAlert(Command):
    name = 'create_alert'

    def __init__(self, data: dict, actor=None):
        super().__init__(actor)
        self.data = dict(data)

    def execute(self):
        alert = open_alert(self.data)
        self.audit('alert', alert.pk, id_device=alert.id_device, type=alert.type)
        return alert


class ResolveAlert(Command):
    name = 'resolve_alert'

    def __init__(self, alert_id, actor=None):
        super().__init__(actor)
        self.alert_id = alert_id

    def validate(self):
        self.alert = Alert.objects.select_for_update().filter(pk=self.alert_id).first()
        if self.alert is None:
            raise NotFound('Alert not found')

    def execute(self):
        alert = resolve(self.alert)
        self.audit('alert', alert.pk, status=alert.status)
        return alert


class CreateAlertWithDevice(Command):
    """Open an alert for a device, creating the device on first contact."""
    name = 'create_alert_with_device'

    def __init__(self, id_device: str, alert_data: dict | None = None, device_data: dict | None = None, actor=None):
        super().__init__(actor)
        self.id_device = id_device
        self.alert_data = dict(alert_data or {})
        self.device_data = dict(device_data or {})

    def execute(self):
        device_fields = {k: v for k, v in self.device_data.items() if k in DEVICE_FIELDS}
        device, created = Device.objects.get_or_create(id_device=self.id_device, defaults=device_fields)
        was_help = False if created else device.help_needed

        id_patient = self.device_data.get('id_patient') or device.id_patient
        patient = Patient.objects.filter(id_patient=id_patient).first() if id_patient else None
        if id_patient and patient is None:
            logger.warning('alert for device %s names unknown patient %s', self.id_device, id_patient)
        if patient is not None and device.id_patient != patient.id_patient:
            link = AssignDevice(patient, device.id_device, actor=self.actor)
            link.validate()
            link.execute()
            device.refresh_from_db()

        patient_info = {}
        if patient is not None:
            patient_info = {'id_patient': patient.id_patient, 'patient_name': patient.name}
        alert = open_alert({'id_device': self.id_device, **patient_info, **self.alert_data})

        for field, value in device_fields.items():
            setattr(device, field, value)
        device.alert = alert
        device.save()
        if device.help_needed != was_help:
            self.after_commit(lambda: broadcast_device_update(device))
        self.audit('alert', alert.pk, id_device=self.id_device, device_created=created)
        return alert, device


class ResolveAlertWithDevice(Command):
    name = 'resolve_alert_with_device'

    def __init__(self, id_device: str, actor=None):
        super().__init__(actor)
        self.id_device = id_device

    def validate(self):
        self.device = get_device_by_external_id(self.id_device)
        self.alert = (
            Alert.objects.select_for_update()
            .filter(id_device=self.id_device, status=Alert.STATUS_OPEN)
            .order_by('-timestamp', '-id')
            .first()
        )
        if self.alert is None:
            raise NotFound(f'No open alert found for device: {self.id_device}')

    def execute(self):
        alert = resolve(self.alert)
        Device.objects.filter(pk=self.device.pk).update(alert=None, updated_at=timezone.now())
        self.device.refresh_from_db()
        self.audit('alert', alert.pk, id_device=self.id_device, status=alert.status)
        return alert, self.device


class UpdateBattery(Command):
    name = 'update_battery'

    def __init__(self, id_device: str, battery_level: int, actor=None):
        super().__init__(actor)
        self.id_device = id_device
        self.battery_level = battery_level

    def validate(self):
        self.device = get_device_by_external_id(self.id_device)

    def execute(self):
        device = self.device
        was_help = device.help_needed
        device.battery_level = self.battery_level
        device.help_needed = battery_help_needed(self.battery_level)
        device.save(update_fields=['battery_level', 'help_needed', 'updated_at'])
        if device.help_needed != was_help:
            self.after_commit(lambda: broadcast_device_update(device))
        return device


def delete_all_alerts() -> int:
    count, _ = Alert.objects.all().delete()
    logger.info('deleted %d alerts', count)
    return count
