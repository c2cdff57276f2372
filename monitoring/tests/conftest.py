import pytest
from django.contrib.auth.hashers import make_password
from django.core.cache import cache
from rest_framework.test import APIClient

from monitoring.models import User

PASSWORD = 'Secret1!'


@pytest.fixture(autouse=True)
def _jwt_secret(settings):
    settings.JWT_SECRET = 'test-secret'
    # Throttle counters live in the cache.
    cache.clear()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='admin1', email='admin@ward.test', password=PASSWORD, role='admin')


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username='nurse1', email='nurse@ward.test', password=PASSWORD, role='user')


@pytest.fixture
def bcrypt_user(db):
    """Account whose stored hash was produced by bcrypt, as seeded by older tooling."""
    return User.objects.create(
        username='a', email='a@x.com', role='user', password=make_password(PASSWORD, hasher='bcrypt'),
    )


def bearer_client(user) -> APIClient:
    client = APIClient()
    r = client.post('/api/auth/login', {'email': user.email, 'password': PASSWORD}, format='json')
    assert r.status_code == 200, r.data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['accessToken']}")
    client.tokens = r.data
    return client


@pytest.fixture
def admin_client(admin_user):
    return bearer_client(admin_user)


@pytest.fixture
def staff_client(staff_user):
    return bearer_client(staff_user)
