import pytest
from django.urls import reverse

from monitoring.models import Patient, Room

pytestmark = pytest.mark.django_db


@pytest.fixture
def rooms(db):
    return [Room.objects.create(name=n, capacity=2, is_active=n != 105) for n in range(101, 113)]


def test_rooms_are_paginated(staff_client, rooms):
    r = staff_client.get(reverse('rooms'), {'page': 2, 'limit': 5})
    assert r.status_code == 200
    assert r.data['pagination'] == {'total': 12, 'page': 2, 'limit': 5, 'pages': 3}
    assert [room['name'] for room in r.data['data']] == [106, 107, 108, 109, 110]


def test_limit_is_capped(staff_client, rooms):
    r = staff_client.get(reverse('rooms'), {'limit': 500})
    assert r.status_code == 400


def test_filter_by_active_flag(staff_client, rooms):
    r = staff_client.get(reverse('rooms'), {'isActive': 'false'})
    assert [room['name'] for room in r.data['data']] == [105]


def test_occupancy_counts_active_patients(staff_client, rooms):
    Patient.objects.create(id_patient='P1', name='Ada', room=101)
    Patient.objects.create(id_patient='P2', name='Old', room=101, archived=True)
    r = staff_client.get(reverse('rooms'), {'name': 101})
    assert r.data['data'][0]['occupied'] == 1


def test_admin_creates_room(admin_client):
    r = admin_client.post(reverse('rooms'), {'name': 301, 'capacity': 3}, format='json')
    assert r.status_code == 201
    assert r.data['occupied'] == 0
    dup = admin_client.post(reverse('rooms'), {'name': 301}, format='json')
    assert dup.status_code == 409


def test_staff_cannot_create_room(staff_client):
    r = staff_client.post(reverse('rooms'), {'name': 301}, format='json')
    assert r.status_code == 403


def test_inactive_room_rejects_patients(staff_client, rooms):
    patient = Patient.objects.create(id_patient='P1', name='Ada')
    r = staff_client.post(reverse('patient_assign_room', args=[patient.id]), {'room': 105}, format='json')
    assert r.status_code == 400
