import base64

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from escorts.routing.probe import reset_probe_cache

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def data_url(content=PNG_BYTES, mime="image/png"):
    return f"data:{mime};base64,{base64.b64encode(content).decode()}"


def escort_payload(**overrides):
    data = {
        "escortCategory": "ambulance",
        "escortName": "Budi Santoso",
        "escortGender": "male",
        "escortPhone": "081234567890",
        "vehiclePlate": "b1234abc",
        "patientName": "Siti Aminah",
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def _isolated(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    # No request may reach a real primary API unless a test opts in
    settings.PRIMARY_API_ENABLED = False
    settings.PRIMARY_API_URL = "http://primary.test"
    cache.clear()
    reset_probe_cache()
    yield
    reset_probe_cache()


@pytest.fixture
def staff_user(db):
    return get_user_model().objects.create_user(username="igd_staff", password="P@ssw0rd1")


@pytest.fixture
def api_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture(params=["legacy", "primary"])
def backend(request, settings, staff_user):
    """An authenticated client and URL base for one API flavour.

    The legacy flavour is reached through the gateway's ``/api/legacy/``
    mount; the primary flavour is served with the primary process's
    URLconf and middleware.
    """
    if request.param == "primary":
        settings.ROOT_URLCONF = "igd.urls_primary"
        settings.MIDDLEWARE = [m for m in settings.MIDDLEWARE if m != settings.BACKEND_ROUTING_MIDDLEWARE]
        settings.API_BACKEND_NAME = "primary"
        base = "/api"
    else:
        base = "/api/legacy"
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return Backend(request.param, client, base)


class Backend:
    def __init__(self, name, client, base):
        self.name = name
        self.client = client
        self.base = base

    def url(self, path=""):
        return f"{self.base}/{path.lstrip('/')}"

    def create(self, **overrides):
        resp = self.client.post(self.url("escort"), escort_payload(**overrides), format="json")
        assert resp.status_code == 201, resp.content
        return resp.json()["data"]


@pytest.fixture
def make_payload():
    return escort_payload


@pytest.fixture
def make_data_url():
    return data_url
