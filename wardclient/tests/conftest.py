import json
import threading

import pytest

from wardclient.client import ApiClient
from wardclient.config import ClientSettings
from wardclient.tokens import TokenStore


class FakeResponse:
    def __init__(self, status_code, body=None, reason=''):
        self.status_code = status_code
        self._body = body
        self.reason = reason
        self.content = b'' if body is None else json.dumps(body).encode()

    def json(self):
        if self._body is None:
            raise ValueError('no body')
        return self._body


class FakeServer:
    """Stands in for ``requests.Session``; routes by path to ``handlers``."""

    def __init__(self):
        self.headers = {}
        self.calls = []
        self.handlers = {}
        self._lock = threading.Lock()

    def route(self, method, path):
        def register(fn):
            self.handlers[(method, path)] = fn
            return fn
        return register

    def request(self, method, url, headers=None, timeout=None, json=None, params=None):
        path = url.split('://', 1)[-1].split('/', 1)[-1]
        path = '/' + path
        with self._lock:
            self.calls.append((method, path, (headers or {}).get('Authorization')))
        return self.handlers[(method, path)](headers or {}, json)

    def count(self, method, path):
        return sum(1 for m, p, _ in self.calls if (m, p) == (method, path))


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def tokens():
    store = TokenStore()
    store.save('old-access', 'refresh-1')
    return store


@pytest.fixture
def make_client(server, tokens):
    def build(**kwargs):
        return ApiClient(ClientSettings(api_url='http://ward.test'), tokens=tokens, session=server, **kwargs)
    return build
