"""
Plain WSGI entrypoint: serves the REST API only.  The live device channel
(``ws/devices/``) needs the ASGI application in ``wardmonitor.asgi``.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'wardmonitor.settings')
application = get_wsgi_application()
