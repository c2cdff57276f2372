"""
Management command to populate the database with a demo ward.
"""
import random

from django.core.management.base import BaseCommand

from monitoring.models import Device, Patient, Room
from monitoring.services.commands import run_command
from monitoring.services.consistency import AssignDevice, AssignRoom

NAMES = [
    'Jan Novak', 'Eva Svobodova', 'Petr Dvorak', 'Jana Cerna', 'Tomas Prochazka',
    'Lucie Kucerova', 'Martin Vesely', 'Anna Horakova', 'Jiri Nemec', 'Tereza Pokorna',
]
ILLNESSES = ['Pneumonia', 'Hip fracture', 'Heart failure', 'Post-op observation', 'Diabetes']


class Command(BaseCommand):
    help = 'Populate database with demo rooms, devices and patients'

    def add_arguments(self, parser):
        parser.add_argument('--rooms', type=int, default=4)
        parser.add_argument('--seed', type=int, default=None)

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])

        rooms = []
        for n in range(1, options['rooms'] + 1):
            room, _ = Room.objects.get_or_create(name=100 + n, defaults={'capacity': rng.choice([1, 2, 3])})
            rooms.append(room)
        self.stdout.write(f'rooms: {len(rooms)}')

        created = 0
        for i, name in enumerate(NAMES):
            patient, is_new = Patient.objects.get_or_create(
                id_patient=f'P-DEMO{i:03d}',
                defaults={'name': name, 'illness': rng.choice(ILLNESSES), 'age': rng.randint(18, 95)},
            )
            device, _ = Device.objects.get_or_create(
                id_device=f'DEV-{i:03d}',
                defaults={'id_gateway': 'GW-1', 'battery_level': rng.randint(10, 100)},
            )
            if not is_new:
                continue
            created += 1
            free = [r for r in rooms if Patient.objects.filter(room=r.name, archived=False).count() < r.capacity]
            if free:
                run_command(AssignRoom(patient, rng.choice(free).name))
            if not device.id_patient:
                run_command(AssignDevice(patient, device.id_device))

        self.stdout.write(self.style.SUCCESS(f'patients created: {created}'))
