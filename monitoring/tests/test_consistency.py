"""
Integration tests for the patient / device / room consistency rules.

Each test drives the HTTP API with an authenticated APIClient and then
checks both sides of every link in the database.
"""
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from monitoring.exceptions import Conflict
from monitoring.models import ArchivedPatient, Device, Patient, Room, User
from monitoring.services.commands import run_command
from monitoring.services.consistency import AssignDevice, AssignRoom


@override_settings(JWT_SECRET='test-secret')
class ConsistencyAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(username='admin1', email='admin@ward.test',
                                              password='Secret1!', role='admin')
        self.nurse = User.objects.create_user(username='nurse1', email='nurse@ward.test',
                                              password='Secret1!', role='user')
        self.room_single = Room.objects.create(name=101, capacity=1)
        self.room_double = Room.objects.create(name=102, capacity=2)
        self.p1 = Patient.objects.create(id_patient='P1', name='Ada', room=102)
        self.p2 = Patient.objects.create(id_patient='P2', name='Grace')
        self.d1 = Device.objects.create(id_device='D1', id_gateway='GW1')
        self.d2 = Device.objects.create(id_device='D2', id_gateway='GW1')

    def authenticate(self, user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def reload(self):
        for obj in (self.p1, self.p2, self.d1, self.d2):
            obj.refresh_from_db()

    # ------------------------------------------------------------------
    # device assignment
    # ------------------------------------------------------------------
    def test_assign_device_links_both_sides(self):
        client = self.authenticate(self.nurse)
        r = client.post(reverse('patient_assign_device', args=[self.p1.id]), {'id_device': 'D1'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.reload()
        self.assertEqual(self.p1.id_device, 'D1')
        self.assertEqual(self.d1.id_patient, 'P1')
        self.assertEqual(self.d1.patient_name, 'Ada')
        self.assertEqual(self.d1.room, 102)
        self.assertEqual(r.data['device']['id_patient'], 'P1')

    def test_assign_then_unassign_restores_device(self):
        client = self.authenticate(self.nurse)
        client.post(reverse('patient_assign_device', args=[self.p1.id]), {'id_device': 'D1'}, format='json')
        r = client.post(reverse('patient_unassign_device', args=[self.p1.id]))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.reload()
        self.assertEqual(self.p1.id_device, '')
        self.assertEqual(self.d1.id_patient, '')
        self.assertEqual(self.d1.patient_name, '')
        self.assertIsNone(self.d1.room)

    def test_switching_device_releases_previous_one(self):
        client = self.authenticate(self.nurse)
        client.post(reverse('patient_assign_device', args=[self.p1.id]), {'id_device': 'D1'}, format='json')
        client.post(reverse('patient_assign_device', args=[self.p1.id]), {'id_device': 'D2'}, format='json')
        self.reload()
        self.assertEqual(self.p1.id_device, 'D2')
        self.assertEqual(self.d1.id_patient, '')
        self.assertEqual(self.d2.id_patient, 'P1')

    def test_device_held_by_other_patient_conflicts(self):
        client = self.authenticate(self.nurse)
        client.post(reverse('patient_assign_device', args=[self.p1.id]), {'id_device': 'D1'}, format='json')
        r = client.post(reverse('patient_assign_device', args=[self.p2.id]), {'id_device': 'D1'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.reload()
        self.assertEqual(self.d1.id_patient, 'P1')
        self.assertEqual(self.p2.id_device, '')

    def test_unknown_device_is_not_found(self):
        client = self.authenticate(self.nurse)
        r = client.post(reverse('patient_assign_device', args=[self.p1.id]), {'id_device': 'NOPE'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['error']['message'], 'Device not found with id: NOPE')

    def test_device_patch_links_patient(self):
        client = self.authenticate(self.nurse)
        r = client.patch(reverse('device_by_external_id', args=['D2']), {'id_patient': 'P2'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.reload()
        self.assertEqual(self.p2.id_device, 'D2')
        self.assertEqual(r.data['patient_name'], 'Grace')

    def test_device_id_is_immutable(self):
        client = self.authenticate(self.nurse)
        r = client.patch(reverse('device_detail', args=[self.d1.id]), {'id_device': 'D9'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    # ------------------------------------------------------------------
    # rooms
    # ------------------------------------------------------------------
    def test_room_assignment_moves_device_too(self):
        client = self.authenticate(self.nurse)
        client.post(reverse('patient_assign_device', args=[self.p2.id]), {'id_device': 'D2'}, format='json')
        r = client.post(reverse('patient_assign_room', args=[self.p2.id]), {'room': 101}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.reload()
        self.assertEqual(self.p2.room, 101)
        self.assertEqual(self.d2.room, 101)

    def test_full_room_rejects_and_leaves_patient_in_place(self):
        Patient.objects.create(id_patient='P3', name='Linus', room=101)
        client = self.authenticate(self.nurse)
        r = client.post(reverse('patient_assign_room', args=[self.p1.id]), {'room': 101}, format='json')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(r.data['error']['message'], 'Room 101 is full')
        self.assertEqual(r.data['error']['cause'], {'capacity': 1, 'occupied': 1})
        self.reload()
        self.assertEqual(self.p1.room, 102)

    def test_command_respects_capacity_directly(self):
        run_command(AssignRoom(self.p2, 101))
        with self.assertRaises(Conflict):
            run_command(AssignRoom(self.p1, 101))

    def test_assign_device_uses_current_patient_links(self):
        stale = Patient.objects.get(pk=self.p1.pk)
        run_command(AssignDevice(self.p1, 'D1'))
        run_command(AssignDevice(stale, 'D2'))
        self.reload()
        self.assertEqual(self.p1.id_device, 'D2')
        self.assertEqual(self.d2.id_patient, 'P1')
        self.assertEqual(self.d1.id_patient, '')
        self.assertEqual(Device.objects.filter(id_patient='P1').count(), 1)

    def test_room_move_from_stale_copy_carries_current_device(self):
        stale = Patient.objects.get(pk=self.p1.pk)
        run_command(AssignDevice(self.p1, 'D1'))
        run_command(AssignRoom(stale, 101))
        self.reload()
        self.assertEqual(self.p1.room, 101)
        self.assertEqual(self.d1.room, 101)

    def test_unknown_room_is_not_found(self):
        client = self.authenticate(self.nurse)
        r = client.post(reverse('patient_assign_room', args=[self.p1.id]), {'room': 999}, format='json')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_patient_in_full_room_conflicts(self):
        Patient.objects.create(id_patient='P3', name='Linus', room=101)
        client = self.authenticate(self.admin)
        r = client.post(reverse('patients'), {'name': 'Barbara', 'room': 101}, format='json')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(Patient.objects.filter(name='Barbara').exists())

    def test_create_patient_with_device(self):
        client = self.authenticate(self.admin)
        r = client.post(reverse('patients'), {'name': 'Barbara', 'room': 101, 'id_device': 'D1'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertTrue(r.data['id_patient'].startswith('P-'))
        self.d1.refresh_from_db()
        self.assertEqual(self.d1.id_patient, r.data['id_patient'])
        self.assertEqual(self.d1.room, 101)

    def test_failed_device_link_rolls_back_new_patient(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.admin)
        r = client.post(reverse('patients'), {'name': 'Barbara', 'id_device': 'D1'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(Patient.objects.filter(name='Barbara').exists())

    def test_nurse_cannot_create_patient(self):
        client = self.authenticate(self.nurse)
        r = client.post(reverse('patients'), {'name': 'Barbara'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)

    def test_room_rename_propagates(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.admin)
        r = client.patch(reverse('room_detail', args=[self.room_double.id]), {'name': 202}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.reload()
        self.assertEqual(self.p1.room, 202)
        self.assertEqual(self.d1.room, 202)

    def test_capacity_cannot_drop_below_occupancy(self):
        Patient.objects.create(id_patient='P3', name='Linus', room=102)
        client = self.authenticate(self.admin)
        r = client.patch(reverse('room_detail', args=[self.room_double.id]), {'capacity': 1}, format='json')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.room_double.refresh_from_db()
        self.assertEqual(self.room_double.capacity, 2)

    def test_delete_room_clears_occupants(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.admin)
        r = client.delete(reverse('room_detail', args=[self.room_double.id]))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data, {'ok': True, 'patientsCleared': 1})
        self.reload()
        self.assertIsNone(self.p1.room)
        self.assertIsNone(self.d1.room)

    def test_nurse_cannot_delete_room(self):
        client = self.authenticate(self.nurse)
        r = client.delete(reverse('room_detail', args=[self.room_double.id]))
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Room.objects.filter(pk=self.room_double.id).exists())

    # ------------------------------------------------------------------
    # patient edits and archiving
    # ------------------------------------------------------------------
    def test_rename_patient_updates_device_label(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.nurse)
        r = client.patch(reverse('patient_detail', args=[self.p1.id]), {'name': 'Ada L.'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.d1.refresh_from_db()
        self.assertEqual(self.d1.patient_name, 'Ada L.')

    def test_patch_clearing_device_unassigns(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.nurse)
        r = client.patch(reverse('patient_detail', args=[self.p1.id]), {'id_device': ''}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.reload()
        self.assertEqual(self.p1.id_device, '')
        self.assertEqual(self.d1.id_patient, '')

    def test_archive_copies_and_frees_links(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.nurse)
        r = client.post(reverse('patient_archive', args=[self.p1.id]), {'status': 'Discharged'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        archived = ArchivedPatient.objects.get(id_patient='P1')
        self.assertEqual(archived.status, 'Discharged')
        self.assertEqual(archived.room, 102)
        self.assertEqual(archived.id_device, 'D1')
        self.reload()
        self.assertTrue(self.p1.archived)
        self.assertIsNone(self.p1.room)
        self.assertEqual(self.d1.id_patient, '')

        listing = client.get(reverse('patients'))
        self.assertNotIn('P1', [p['id_patient'] for p in listing.data['data']])
        with_archived = client.get(reverse('patients'), {'include_archived': 'true'})
        self.assertIn('P1', [p['id_patient'] for p in with_archived.data['data']])

    def test_archiving_twice_writes_two_copies(self):
        client = self.authenticate(self.nurse)
        first = client.post(reverse('patient_archive', args=[self.p2.id]), {}, format='json')
        second = client.post(reverse('patient_archive', args=[self.p2.id]), {}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ArchivedPatient.objects.filter(id_patient='P2').count(), 2)

    def test_archived_patient_cannot_take_a_device(self):
        client = self.authenticate(self.nurse)
        client.post(reverse('patient_archive', args=[self.p2.id]), {}, format='json')
        r = client.post(reverse('patient_assign_device', args=[self.p2.id]), {'id_device': 'D2'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_archived_patients_listing(self):
        client = self.authenticate(self.nurse)
        client.post(reverse('patient_archive', args=[self.p2.id]), {}, format='json')
        r = client.get(reverse('archived_patients'))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertTrue(r.data['ok'])
        self.assertEqual([a['id_patient'] for a in r.data['data']], ['P2'])

    def test_delete_patient_frees_device(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.admin)
        r = client.delete(reverse('patient_detail', args=[self.p1.id]))
        self.assertEqual(r.status_code, status.HTTP_204_NO_CONTENT)
        self.d1.refresh_from_db()
        self.assertEqual(self.d1.id_patient, '')

    def test_delete_device_clears_patient_reference(self):
        run_command(AssignDevice(self.p1, 'D1'))
        client = self.authenticate(self.admin)
        r = client.delete(reverse('device_detail', args=[self.d1.id]))
        self.assertEqual(r.status_code, status.HTTP_204_NO_CONTENT)
        self.p1.refresh_from_db()
        self.assertEqual(self.p1.id_device, '')
