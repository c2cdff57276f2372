"""
Database models for the ward monitoring backend.

Patients, devices and rooms reference each other by their external
identifiers (``id_patient``, ``id_device`` and the room number) rather
than by foreign keys, which mirrors how the monitoring gateways report
telemetry.  Keeping those denormalized references in step is the job of
:mod:`monitoring.services.consistency`.
"""
from __future__ import annotations

import secrets

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


def generate_patient_id() -> str:
    return f"P-{secrets.token_hex(4).upper()}"


class User(AbstractUser):
    """Staff account.  ``role`` decides what the account may mutate."""
    ROLE_ADMIN = 'admin'
    ROLE_USER = 'user'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_USER, 'User'),
    ]
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Room(models.Model):
    name = models.PositiveIntegerField(unique=True, validators=[MaxValueValidator(9999)])
    capacity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"Room {self.name} (capacity {self.capacity})"


class PatientRecord(models.Model):
    """Fields shared by active and archived patients."""
    id_patient = models.CharField(max_length=64, db_index=True)
    id_device = models.CharField(max_length=64, blank=True, default='')
    name = models.CharField(max_length=255)
    room = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    illness = models.CharField(max_length=255, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(max_length=64, default='Hospitalized')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class Patient(PatientRecord):
    id_patient = models.CharField(max_length=64, unique=True, default=generate_patient_id)
    # Archived patients stay in the table but drop out of active listings.
    archived = models.BooleanField(default=False, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self) -> str:
        return f"{self.name} ({self.id_patient})"


class ArchivedPatient(PatientRecord):
    # Set explicitly so the copy keeps the original admission time.
    created_at = models.DateTimeField(null=True, blank=True)
    archived_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ['-archived_at', '-id']

    def __str__(self) -> str:
        return f"{self.name} archived {self.archived_at:%Y-%m-%d}"


class Alert(models.Model):
    STATUS_OPEN = 'open'
    STATUS_RESOLVED = 'resolved'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_RESOLVED, 'Resolved'),
    ]
    id_device = models.CharField(max_length=64, blank=True, db_index=True)
    id_patient = models.CharField(max_length=64, blank=True)
    patient_name = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    message = models.CharField(max_length=500, blank=True)
    type = models.CharField(max_length=64, blank=True)
    # [{"status": "open", "timestamp": "..."}]
    history = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ['-timestamp', '-id']

    def __str__(self) -> str:
        return f"{self.type or 'alert'} on {self.id_device} ({self.status})"


class Device(models.Model):
    id_device = models.CharField(max_length=64, unique=True)
    id_gateway = models.CharField(max_length=64, blank=True)
    room = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    id_patient = models.CharField(max_length=64, blank=True, default='', db_index=True)
    patient_name = models.CharField(max_length=255, blank=True)
    battery_level = models.PositiveSmallIntegerField(
        default=100, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    help_needed = models.BooleanField(default=False)
    alert = models.ForeignKey(Alert, null=True, blank=True, on_delete=models.SET_NULL, related_name='devices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id_device']

    def __str__(self) -> str:
        return self.id_device


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='monitoring__action_3f1c2a_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='monitoring__object__8b7e41_idx'),
        ]
