"""
Response helpers shared by the API views.

Collections are always wrapped as ``{'ok': True, 'data': [...]}`` (plus
``pagination`` where the endpoint pages); single resources are returned
as bare objects.
"""
from __future__ import annotations

from rest_framework.response import Response


def iso(dt):
    return dt.isoformat() if dt else None


def list_response(items, *, pagination: dict | None = None, status: int = 200) -> Response:
    payload: dict[str, object] = {'ok': True, 'data': list(items)}
    if pagination is not None:
        payload['pagination'] = pagination
    return Response(payload, status=status)


def client_ip(request) -> str | None:
    return request.META.get('REMOTE_ADDR')
