"""
ASGI config for the igd project.

HTTP only; set ``DJANGO_SETTINGS_MODULE=igd.settings_primary`` to serve the
primary API flavour.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "igd.settings")

application = get_asgi_application()
