"""
Patient / device / room consistency rules.

``Patient.id_device`` and ``Device.id_patient`` are mutual inverses, and a
device follows its patient into whatever room the patient occupies.  Every
command here writes both sides inside the transaction opened by
:func:`monitoring.services.commands.run_command`.
"""
from __future__ import annotations

import logging

from django.db.models import Q
from django.utils import timezone

from monitoring.exceptions import BadRequest, Conflict, NotFound
from monitoring.models import ArchivedPatient, Device, Patient, Room
from monitoring.realtime.registry import broadcast_device_update
from monitoring.services.commands import Command

logger = logging.getLogger(__name__)

PATIENT_FIELDS = ('name', 'illness', 'age', 'status', 'notes')
DEVICE_FIELDS = ('id_gateway', 'room', 'battery_level', 'help_needed', 'patient_name')


def get_patient(pk) -> Patient:
    patient = Patient.objects.filter(pk=pk).first()
    if patient is None:
        raise NotFound('Patient not found')
    return patient


def get_device(pk) -> Device:
    device = Device.objects.filter(pk=pk).first()
    if device is None:
        raise NotFound('Device not found')
    return device


def get_device_by_external_id(id_device: str) -> Device:
    device = Device.objects.filter(id_device=id_device).first()
    if device is None:
        raise NotFound(f'Device not found with id: {id_device}')
    return device


def get_room(pk) -> Room:
    room = Room.objects.filter(pk=pk).first()
    if room is None:
        raise NotFound('Room not found')
    return room


def occupancy(room_number: int, *, exclude_pk=None) -> int:
    qs = Patient.objects.filter(room=room_number, archived=False)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.count()


def reserve_room(room_number: int, *, exclude_pk=None) -> Room:
    """Lock the room row and make sure one more patient fits.

    Must run inside a transaction; the row lock serializes concurrent
    assignments to the same room until commit.
    """
    room = Room.objects.select_for_update().filter(name=room_number).first()
    if room is None:
        raise NotFound(f'Room {room_number} not found')
    if not room.is_active:
        raise BadRequest(f'Room {room_number} is not active.')
    occupied = occupancy(room_number, exclude_pk=exclude_pk)
    if occupied >= room.capacity:
        raise Conflict(f'Room {room_number} is full', cause={'capacity': room.capacity, 'occupied': occupied})
    return room


def lock_patient(patient: Patient) -> Patient:
    """Lock the patient row and reload it in place.

    Views load the patient before the transaction opens, so its links may
    be stale by the time a command runs.
    """
    if patient.pk is None:
        return patient
    if not Patient.objects.select_for_update().filter(pk=patient.pk).exists():
        raise NotFound('Patient not found')
    patient.refresh_from_db()
    return patient


def _release_devices(filter_q: Q) -> int:
    return Device.objects.filter(filter_q).update(
        id_patient='', patient_name='', room=None, updated_at=timezone.now()
    )


# ---------------------------------------------------------------------
# Device <-> patient
# ---------------------------------------------------------------------
class AssignDevice(Command):
    name = 'assign_device'

    def __init__(self, patient: Patient, id_device: str, actor=None):
        super().__init__(actor)
        self.patient = patient
        self.id_device = id_device
        self.device: Device | None = None

    def validate(self):
        lock_patient(self.patient)
        if self.patient.archived:
            raise BadRequest('Archived patients cannot be assigned a device.')
        self.device = Device.objects.select_for_update().filter(id_device=self.id_device).first()
        if self.device is None:
            raise NotFound(f'Device not found with id: {self.id_device}')
        holder = self.device.id_patient
        if holder and holder != self.patient.id_patient:
            raise Conflict(f'Device {self.id_device} is already assigned to patient {holder}.')

    def execute(self):
        patient, device = self.patient, self.device
        previous = patient.id_device
        if previous and previous != device.id_device:
            _release_devices(Q(id_device=previous, id_patient=patient.id_patient))
        # Drop stale references from any other patient to this device.
        Patient.objects.filter(id_device=device.id_device).exclude(pk=patient.pk).update(id_device='')

        device.id_patient = patient.id_patient
        device.patient_name = patient.name
        device.room = patient.room
        device.save(update_fields=['id_patient', 'patient_name', 'room', 'updated_at'])

        patient.id_device = device.id_device
        patient.save(update_fields=['id_device', 'updated_at'])
        self.audit('patient', patient.pk, id_device=device.id_device, previous=previous or None)
        return patient, device


class UnassignDevice(Command):
    name = 'unassign_device'

    def __init__(self, patient: Patient, actor=None):
        super().__init__(actor)
        self.patient = patient

    def validate(self):
        lock_patient(self.patient)

    def execute(self):
        patient = self.patient
        id_device = patient.id_device
        match = Q(id_patient=patient.id_patient)
        if id_device:
            match |= Q(id_device=id_device)
        _release_devices(match)

        patient.id_device = ''
        if patient.pk:
            patient.save(update_fields=['id_device', 'updated_at'])
        self.audit('patient', patient.pk, id_device=id_device or None)
        return patient, Device.objects.filter(id_device=id_device).first() if id_device else None


# ---------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------
class AssignRoom(Command):
    name = 'assign_room'

    def __init__(self, patient: Patient, room_number: int | None, actor=None):
        super().__init__(actor)
        self.patient = patient
        self.room_number = room_number

    def validate(self):
        lock_patient(self.patient)
        if self.patient.archived:
            raise BadRequest('Archived patients cannot be assigned a room.')
        if self.room_number is None or self.room_number == self.patient.room:
            return
        reserve_room(self.room_number, exclude_pk=self.patient.pk)

    def execute(self):
        patient = self.patient
        previous = patient.room
        patient.room = self.room_number
        patient.save(update_fields=['room', 'updated_at'])
        if patient.id_device:
            Device.objects.filter(id_device=patient.id_device).update(room=self.room_number, updated_at=timezone.now())
        self.audit('patient', patient.pk, room=self.room_number, previous=previous)
        return patient


class UpdateRoom(Command):
    name = 'update_room'

    def __init__(self, room: Room, changes: dict, actor=None):
        super().__init__(actor)
        self.room = room
        self.changes = changes

    def validate(self):
        self.room = Room.objects.select_for_update().get(pk=self.room.pk)
        name = self.changes.get('name', self.room.name)
        if name != self.room.name and Room.objects.filter(name=name).exclude(pk=self.room.pk).exists():
            raise Conflict(f'Room {name} already exists.')
        capacity = self.changes.get('capacity', self.room.capacity)
        occupied = occupancy(self.room.name)
        if capacity < occupied:
            raise Conflict(f'Room {self.room.name} holds {occupied} patients; capacity cannot drop below that.')

    def execute(self):
        room = self.room
        old_name = room.name
        for field, value in self.changes.items():
            setattr(room, field, value)
        room.save()
        if room.name != old_name:
            Patient.objects.filter(room=old_name).update(room=room.name)
            Device.objects.filter(room=old_name).update(room=room.name, updated_at=timezone.now())
        self.audit('room', room.pk, **{k: v for k, v in self.changes.items()})
        return room


class DeleteRoom(Command):
    name = 'delete_room'

    def __init__(self, room: Room, actor=None):
        super().__init__(actor)
        self.room = room

    def execute(self):
        number = self.room.name
        moved = Patient.objects.filter(room=number).update(room=None)
        Device.objects.filter(room=number).update(room=None, updated_at=timezone.now())
        self.audit('room', self.room.pk, name=number, patients_cleared=moved)
        self.room.delete()
        return moved


# ---------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------
class CreatePatient(Command):
    name = 'create_patient'

    def __init__(self, data: dict, actor=None):
        super().__init__(actor)
        self.data = dict(data)

    def validate(self):
        id_patient = self.data.get('id_patient')
        if id_patient and Patient.objects.filter(id_patient=id_patient).exists():
            raise Conflict(f'A patient with id {id_patient} already exists.')
        if self.data.get('room') is not None:
            reserve_room(self.data['room'])

    def execute(self):
        id_device = self.data.pop('id_device', '') or ''
        if not self.data.get('id_patient'):
            self.data.pop('id_patient', None)
        patient = Patient.objects.create(**self.data)
        if id_device:
            assign = AssignDevice(patient, id_device, actor=self.actor)
            assign.validate()
            assign.execute()
        self.audit('patient', patient.pk, id_patient=patient.id_patient)
        return patient


class UpdatePatient(Command):
    """Field edits plus the linked-entity effects of name, room and device changes."""
    name = 'update_patient'

    def __init__(self, patient: Patient, changes: dict, actor=None):
        super().__init__(actor)
        self.patient = patient
        self.changes = dict(changes)
        self.followups: list[Command] = []

    def validate(self):
        lock_patient(self.patient)
        if 'room' in self.changes:
            room = self.changes.pop('room')
            if room != self.patient.room:
                self.followups.append(AssignRoom(self.patient, room, actor=self.actor))
        if 'id_device' in self.changes:
            id_device = self.changes.pop('id_device') or ''
            if id_device != self.patient.id_device:
                if id_device:
                    self.followups.append(AssignDevice(self.patient, id_device, actor=self.actor))
                else:
                    self.followups.append(UnassignDevice(self.patient, actor=self.actor))
        if self.patient.archived and self.followups:
            raise BadRequest('Archived patients cannot be moved or given a device.')
        for followup in self.followups:
            followup.validate()

    def execute(self):
        patient = self.patient
        renamed = 'name' in self.changes and self.changes['name'] != patient.name
        for field in PATIENT_FIELDS:
            if field in self.changes:
                setattr(patient, field, self.changes[field])
        patient.save()
        if renamed:
            Device.objects.filter(id_patient=patient.id_patient).update(patient_name=patient.name)
        for followup in self.followups:
            followup.execute()
        if self.changes:
            self.audit('patient', patient.pk, fields=sorted(self.changes))
        return patient


class DeletePatient(Command):
    name = 'delete_patient'

    def __init__(self, patient: Patient, actor=None):
        super().__init__(actor)
        self.patient = patient

    def validate(self):
        lock_patient(self.patient)

    def execute(self):
        UnassignDevice(self.patient, actor=self.actor).execute()
        self.audit('patient', self.patient.pk, id_patient=self.patient.id_patient)
        self.patient.delete()


class ArchivePatient(Command):
    """Copy the patient into the archive and retire the active record.

    Not idempotent: each call writes a new archived copy.
    """
    name = 'archive_patient'

    def __init__(self, patient: Patient, status: str | None = None, actor=None):
        super().__init__(actor)
        self.patient = patient
        self.status = status

    def validate(self):
        lock_patient(self.patient)

    def execute(self):
        patient = self.patient
        if self.status:
            patient.status = self.status
        archived = ArchivedPatient.objects.create(
            id_patient=patient.id_patient,
            id_device=patient.id_device,
            name=patient.name,
            room=patient.room,
            illness=patient.illness,
            age=patient.age,
            status=patient.status,
            notes=patient.notes,
            created_at=patient.created_at,
            archived_at=timezone.now(),
        )
        UnassignDevice(patient, actor=self.actor).execute()
        patient.room = None
        patient.archived = True
        patient.save(update_fields=['status', 'room', 'archived', 'updated_at'])
        self.audit('patient', patient.pk, archived_id=archived.pk, status=patient.status)
        return archived


# ---------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------
def _device_patient_change(device: Device, id_patient: str, actor) -> Command | None:
    if id_patient == device.id_patient:
        return None
    if id_patient:
        patient = Patient.objects.filter(id_patient=id_patient).first()
        if patient is None:
            raise NotFound(f'Patient not found with id: {id_patient}')
        return AssignDevice(patient, device.id_device, actor=actor)
    holder = Patient.objects.filter(id_patient=device.id_patient).first()
    if holder is None:
        _release_devices(Q(pk=device.pk))
        return None
    return UnassignDevice(holder, actor=actor)


class CreateDevice(Command):
    name = 'create_device'

    def __init__(self, data: dict, actor=None):
        super().__init__(actor)
        self.data = dict(data)

    def validate(self):
        if Device.objects.filter(id_device=self.data['id_device']).exists():
            raise Conflict(f"A device with id {self.data['id_device']} already exists.")

    def execute(self):
        id_patient = self.data.pop('id_patient', '') or ''
        device = Device.objects.create(**self.data)
        if id_patient:
            link = _device_patient_change(device, id_patient, self.actor)
            link.validate()
            link.execute()
            device.refresh_from_db()
        self.audit('device', device.pk, id_device=device.id_device)
        return device


class UpdateDevice(Command):
    name = 'update_device'

    def __init__(self, device: Device, changes: dict, actor=None):
        super().__init__(actor)
        self.device = device
        self.changes = dict(changes)
        self.link: Command | None = None

    def validate(self):
        new_id = self.changes.get('id_device')
        if new_id and new_id != self.device.id_device:
            raise BadRequest('id_device cannot be changed.')
        self.changes.pop('id_device', None)

    def execute(self):
        device = self.device
        was_help = device.help_needed
        for field in DEVICE_FIELDS:
            if field in self.changes:
                setattr(device, field, self.changes[field])
        device.save()

        if 'id_patient' in self.changes:
            self.link = _device_patient_change(device, self.changes['id_patient'] or '', self.actor)
            if self.link is not None:
                self.link.validate()
                self.link.execute()
            device.refresh_from_db()

        if device.help_needed != was_help:
            self.after_commit(lambda: broadcast_device_update(device))
        self.audit('device', device.pk, fields=sorted(self.changes))
        return device


class DeleteDevice(Command):
    name = 'delete_device'

    def __init__(self, device: Device, actor=None):
        super().__init__(actor)
        self.device = device

    def execute(self):
        Patient.objects.filter(id_device=self.device.id_device).update(id_device='')
        self.audit('device', self.device.pk, id_device=self.device.id_device)
        self.device.delete()


class SetHelpNeeded(Command):
    name = 'set_help_needed'

    def __init__(self, device: Device, help_needed: bool, actor=None):
        super().__init__(actor)
        self.device = device
        self.help_needed = help_needed

    def execute(self):
        device = self.device
        changed = device.help_needed != self.help_needed
        device.help_needed = self.help_needed
        device.save(update_fields=['help_needed', 'updated_at'])
        if changed:
            logger.info('device %s help_needed=%s', device.id_device, device.help_needed)
            self.after_commit(lambda: broadcast_device_update(device))
        self.audit('device', device.pk, help_needed=device.help_needed)
        return device
