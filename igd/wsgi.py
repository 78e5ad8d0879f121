"""
WSGI config for the igd project.

It exposes the WSGI callable as a module-level variable named ``application``.
The primary API process sets ``DJANGO_SETTINGS_MODULE=igd.settings_primary``
before importing this module; the gateway uses the default.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'igd.settings')

application = get_wsgi_application()
