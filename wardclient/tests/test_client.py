import threading
import time

import pytest
import requests

from wardclient.errors import ApiError, NetworkError, SessionExpired
from wardclient.tests.conftest import FakeResponse


def protected(server, *, valid='Bearer new-access'):
    @server.route('GET', '/api/patients')
    def patients(headers, body):
        if headers.get('Authorization') == valid:
            return FakeResponse(200, {'ok': True, 'data': [{'id_patient': 'P1'}]})
        return FakeResponse(401, {'ok': False, 'error': {'message': 'Invalid or expired token.'}})


def test_concurrent_401s_share_a_single_refresh(server, make_client):
    protected(server)
    barrier = threading.Barrier(3)

    @server.route('POST', '/api/auth/refresh')
    def refresh(headers, body):
        assert body == {'refreshToken': 'refresh-1'}
        time.sleep(0.05)
        return FakeResponse(200, {'accessToken': 'new-access'})

    client = make_client()
    results, errors = [], []

    def worker():
        barrier.wait()
        try:
            results.append(client.patients())
        except Exception as exc:  # pragma: no cover - surfaced by the asserts below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert errors == []
    assert results == [[{'id_patient': 'P1'}]] * 3
    assert server.count('POST', '/api/auth/refresh') == 1
    retried = [auth for m, p, auth in server.calls if p == '/api/patients' and auth == 'Bearer new-access']
    assert len(retried) == 3
    assert client.tokens.access_token == 'new-access'
    assert client.state == 'authenticated'


def test_refresh_failure_fails_every_waiter(server, make_client):
    protected(server)
    barrier = threading.Barrier(3)
    expired, notices = [], []

    @server.route('POST', '/api/auth/refresh')
    def refresh(headers, body):
        time.sleep(0.05)
        return FakeResponse(401, {'ok': False, 'error': {'message': 'Invalid or expired refresh token.'}})

    client = make_client(on_session_expired=expired.append, on_notify=lambda level, msg: notices.append(msg))
    outcomes = []

    def worker():
        barrier.wait()
        try:
            client.patients()
        except Exception as exc:
            outcomes.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert len(outcomes) == 3
    assert all(isinstance(exc, SessionExpired) for exc in outcomes)
    assert server.count('POST', '/api/auth/refresh') == 1
    assert expired == ['Session expired. Please log in again.']
    assert notices == ['Session expired. Please log in again.']
    assert client.tokens.access_token is None
    assert client.tokens.refresh_token is None
    assert 'Authorization' not in server.headers
    assert client.state == 'anonymous'


def test_missing_refresh_token_ends_session(server, make_client, tokens):
    protected(server)
    tokens.save('old-access', None)
    expired = []
    client = make_client(on_session_expired=expired.append)
    with pytest.raises(SessionExpired):
        client.patients()
    assert server.count('POST', '/api/auth/refresh') == 0
    assert expired == ['No refresh token available.']


def test_second_401_after_refresh_is_final(server, make_client):
    protected(server, valid='Bearer never')

    @server.route('POST', '/api/auth/refresh')
    def refresh(headers, body):
        return FakeResponse(200, {'accessToken': 'new-access'})

    client = make_client()
    with pytest.raises(ApiError) as exc_info:
        client.patients()
    assert exc_info.value.status == 401
    assert server.count('GET', '/api/patients') == 2
    assert server.count('POST', '/api/auth/refresh') == 1


def test_login_401_is_not_refreshed(server, make_client):
    @server.route('POST', '/api/auth/login')
    def login(headers, body):
        return FakeResponse(401, {'ok': False, 'error': {'message': 'Invalid credentials'}})

    client = make_client()
    with pytest.raises(ApiError) as exc_info:
        client.login('nurse@ward.test', 'nope')
    assert exc_info.value.message == 'Invalid credentials'
    assert server.count('POST', '/api/auth/refresh') == 0


def test_login_stores_tokens_and_auth_calls_skip_bearer(server, make_client):
    @server.route('POST', '/api/auth/login')
    def login(headers, body):
        return FakeResponse(200, {'accessToken': 'a2', 'refreshToken': 'r2'})

    client = make_client()
    client.login('nurse@ward.test', 'Secret1!')
    assert client.tokens.access_token == 'a2'
    assert client.tokens.refresh_token == 'r2'
    assert server.headers['Authorization'] == 'Bearer a2'
    assert server.calls[-1][2] is None


def test_network_errors_are_not_retried(server, make_client):
    notices = []

    @server.route('GET', '/api/patients')
    def down(headers, body):
        raise requests.ConnectionError('connection refused')

    client = make_client(on_notify=lambda level, msg: notices.append((level, msg)))
    with pytest.raises(NetworkError):
        client.patients()
    assert server.count('GET', '/api/patients') == 1
    assert notices == [('error', 'Network error. Please check your connection.')]
    assert client.tokens.access_token == 'old-access'


def test_network_error_during_refresh_keeps_the_session(server, make_client):
    protected(server)
    expired = []

    @server.route('POST', '/api/auth/refresh')
    def refresh(headers, body):
        raise requests.ConnectionError('connection refused')

    client = make_client(on_session_expired=expired.append)
    with pytest.raises(NetworkError):
        client.patients()
    assert expired == []
    assert client.tokens.refresh_token == 'refresh-1'
    assert not client.coordinator.in_flight

    @server.route('POST', '/api/auth/refresh')
    def refresh_again(headers, body):
        return FakeResponse(200, {'accessToken': 'new-access'})

    assert client.patients() == [{'id_patient': 'P1'}]


def test_mutations_notify_update_listeners(server, make_client):
    @server.route('POST', '/api/patients/4/assign-device')
    def assign(headers, body):
        return FakeResponse(200, {'patient': {'id': 4}, 'device': {'id_device': body['id_device']}})

    client = make_client()
    fired = []
    client.add_update_listener(lambda: fired.append(True))
    client.assign_device(4, 'D1')
    assert fired == [True]


def test_error_envelope_is_unwrapped(server, make_client):
    @server.route('POST', '/api/patients/4/assign-room')
    def full(headers, body):
        return FakeResponse(409, {'ok': False, 'error': {'code': 'conflict', 'statusCode': 409,
                                                         'message': 'Room 101 is full'}})

    client = make_client()
    with pytest.raises(ApiError) as exc_info:
        client.assign_room(4, 101)
    assert exc_info.value.status == 409
    assert exc_info.value.message == 'Room 101 is full'
    assert exc_info.value.payload['error']['code'] == 'conflict'
