import re

import pytest
from django.core.files.storage import default_storage

from escorts.exceptions import NotFoundError, StorageError, ValidationError
from escorts.models import Escort
from escorts.services import photos
from escorts.services.escorts import EscortService, make_submission_id

pytestmark = pytest.mark.django_db


@pytest.fixture
def service():
    return EscortService()


def test_create_normalises_and_fills_defaults(service, make_payload):
    e = service.create_record(make_payload(escortCategory="Ambulance", escortGender="Male"), source_ip="10.0.0.7")
    assert e.escort_category == "ambulance"
    assert e.escort_gender == "male"
    assert e.status == "pending"
    assert e.api_submission is True
    assert e.source_ip == "10.0.0.7"
    assert re.fullmatch(r"ESC_\d+_B1234ABC", e.submission_id)


def test_create_accepts_indonesian_aliases(service, make_payload):
    e = service.create_record(make_payload(escortCategory="Perorangan", escortGender="Perempuan"))
    assert e.escort_category == "private-individual"
    assert e.escort_gender == "female"


def test_create_with_status_override(service, make_payload):
    assert service.create_record(make_payload(status="VERIFIED")).status == "verified"


def test_create_strips_markup_before_length_check(service, make_payload):
    e = service.create_record(make_payload(escortName="<b>Rina</b>"))
    assert e.escort_name == "Rina"
    with pytest.raises(ValidationError) as ei:
        service.create_record(make_payload(escortName="<i>Al</i>"))
    assert "escortName" in ei.value.fields


def test_create_keeps_ampersands_and_bare_angle_brackets(service, make_payload):
    e = service.create_record(make_payload(patientName="Ani & Budi", escortName="Rudi <3 Siti"))
    assert e.patient_name == "Ani & Budi"
    assert e.escort_name == "Rudi <3 Siti"


def test_length_limit_counts_characters_as_sent(service, make_payload):
    name = "A&" * 127 + "A"
    assert len(name) == 255
    e = service.create_record(make_payload(patientName=name))
    assert e.patient_name == name
    with pytest.raises(ValidationError) as ei:
        service.create_record(make_payload(patientName=name + "&"))
    assert "patientName" in ei.value.fields


def test_create_reports_every_failing_field(service, make_payload):
    payload = make_payload(escortName="Al", escortPhone="123", vehiclePlate="AB", escortCategory="taxi")
    del payload["patientName"]
    with pytest.raises(ValidationError) as ei:
        service.create_record(payload)
    assert set(ei.value.fields) == {"escortName", "escortPhone", "vehiclePlate", "escortCategory", "patientName"}
    assert Escort.objects.count() == 0


def test_create_with_photo_persists_file(service, make_payload, make_data_url):
    e = service.create_record(make_payload(photoData=make_data_url()))
    assert e.photo_reference.startswith("escorts/")
    assert e.photo_reference.endswith(".png")
    assert default_storage.exists(e.photo_reference)


def test_create_with_bad_photo_persists_nothing(service, make_payload, make_data_url):
    with pytest.raises(ValidationError) as ei:
        service.create_record(make_payload(escortName="x", photoData=make_data_url(mime="image/bmp")))
    assert set(ei.value.fields) == {"escortName", "photoData"}
    assert "image/bmp" in ei.value.fields["photoData"]
    assert Escort.objects.count() == 0


def test_create_removes_photo_when_insert_fails(service, make_payload, make_data_url, monkeypatch):
    saved = []
    real_save = photos.save_photo

    def tracking_save(image):
        name = real_save(image)
        saved.append(name)
        return name

    def failing_insert(**fields):
        raise StorageError()

    monkeypatch.setattr(photos, "save_photo", tracking_save)
    monkeypatch.setattr(service.store, "insert", failing_insert)
    with pytest.raises(StorageError):
        service.create_record(make_payload(photoData=make_data_url()))
    assert len(saved) == 1
    assert not default_storage.exists(saved[0])


def test_photo_size_limit(service, make_payload, make_data_url, settings):
    settings.ESCORT_PHOTO_MAX_BYTES = 64
    with pytest.raises(ValidationError) as ei:
        service.create_record(make_payload(photoData=make_data_url(b"\xff" * 65, "image/jpeg")))
    assert "too large" in ei.value.fields["photoData"]


@pytest.mark.parametrize("value", ["not-a-data-url", "data:image/png;base64,@@@", "data:image/png,abcd"])
def test_photo_encoding_errors(service, make_payload, value):
    with pytest.raises(ValidationError) as ei:
        service.create_record(make_payload(photoData=value))
    assert ei.value.fields["photoData"] == "Invalid image encoding"


def test_partial_update_changes_only_supplied_fields(service, make_payload):
    e = service.create_record(make_payload())
    before = Escort.objects.get(pk=e.pk)
    updated = service.update_record(e.pk, {"patientName": "Dewi Lestari"})
    assert updated.patient_name == "Dewi Lestari"
    for field in ("escort_category", "escort_name", "escort_gender", "escort_phone", "vehicle_plate", "status",
                  "submission_id", "created_at"):
        assert getattr(updated, field) == getattr(before, field)
    assert updated.updated_at >= before.updated_at


def test_update_validates_only_supplied_fields(service, make_payload):
    e = service.create_record(make_payload())
    with pytest.raises(ValidationError) as ei:
        service.update_record(e.pk, {"escortPhone": "1", "escortGender": "robot"})
    assert set(ei.value.fields) == {"escortPhone", "escortGender"}


def test_update_missing_record_is_not_found_before_validation(service):
    with pytest.raises(NotFoundError):
        service.update_record(12345, {"escortPhone": "1"})


def test_empty_update_changes_nothing(service, make_payload):
    e = service.create_record(make_payload())
    assert service.update_record(e.pk, {}).updated_at == e.updated_at


def test_status_transitions_are_unrestricted(service, make_payload):
    e = service.create_record(make_payload())
    assert service.update_status(e.pk, {"status": "rejected"}).status == "rejected"
    assert service.update_status(e.pk, {"status": "pending"}).status == "pending"
    assert service.update_status(e.pk, {"status": "verified"}).status == "verified"


def test_setting_same_status_is_idempotent(service, make_payload):
    e = service.create_record(make_payload())
    first = service.update_status(e.pk, {"status": "verified"})
    second = service.update_status(e.pk, {"status": "verified"})
    assert second.status == "verified"
    assert second.updated_at >= first.updated_at
    fresh = Escort.objects.get(pk=e.pk)
    assert (fresh.escort_name, fresh.patient_name) == (e.escort_name, e.patient_name)


@pytest.mark.parametrize("payload", [{}, {"status": "archived"}, {"status": ""}])
def test_status_update_requires_valid_status(service, make_payload, payload):
    e = service.create_record(make_payload())
    with pytest.raises(ValidationError) as ei:
        service.update_status(e.pk, payload)
    assert "status" in ei.value.fields
    assert Escort.objects.get(pk=e.pk).status == "pending"


def test_delete_removes_row_and_photo(service, make_payload, make_data_url):
    e = service.create_record(make_payload(photoData=make_data_url()))
    name = e.photo_reference
    service.delete_record(e.pk)
    assert not default_storage.exists(name)
    with pytest.raises(NotFoundError):
        service.get_record(e.pk)


def test_delete_succeeds_when_photo_removal_fails(service, make_payload, make_data_url, monkeypatch):
    e = service.create_record(make_payload(photoData=make_data_url()))

    def broken_delete(name):
        raise OSError("read-only filesystem")

    monkeypatch.setattr(default_storage, "delete", broken_delete)
    service.delete_record(e.pk)
    assert not Escort.objects.filter(pk=e.pk).exists()


def test_image_round_trip(service, make_payload, make_data_url):
    url = make_data_url()
    e = service.create_record(make_payload(photoData=url))
    assert service.get_image_encoded(e.pk) == url
    content, content_type = service.get_image_bytes(e.pk)
    assert content_type == "image/png"
    assert content.startswith(b"\x89PNG")


def test_image_without_photo_is_not_found(service, make_payload):
    e = service.create_record(make_payload())
    with pytest.raises(NotFoundError) as ei:
        service.get_image_encoded(e.pk)
    assert str(ei.value.detail) == "Image not found"


def test_image_missing_from_storage_is_not_found(service, make_payload, make_data_url):
    e = service.create_record(make_payload(photoData=make_data_url()))
    default_storage.delete(e.photo_reference)
    with pytest.raises(NotFoundError):
        service.get_image_bytes(e.pk)


def test_replaced_photo_is_kept_by_default(service, make_payload, make_data_url):
    e = service.create_record(make_payload(photoData=make_data_url()))
    old = e.photo_reference
    updated = service.update_record(e.pk, {"photoData": make_data_url(b"GIF89a" + b"\x00" * 10, "image/gif")})
    assert updated.photo_reference.endswith(".gif")
    assert default_storage.exists(old)


def test_replaced_photo_is_deleted_when_configured(service, make_payload, make_data_url, settings):
    settings.ESCORT_DELETE_REPLACED_PHOTOS = True
    e = service.create_record(make_payload(photoData=make_data_url()))
    old = e.photo_reference
    service.upload_image(e.pk, {"imageData": make_data_url()})
    assert not default_storage.exists(old)


def test_oversized_upload_leaves_record_unchanged(service, make_payload, make_data_url, settings):
    settings.ESCORT_PHOTO_MAX_BYTES = 2 * 1024 * 1024
    e = service.create_record(make_payload())
    with pytest.raises(ValidationError) as ei:
        service.upload_image(e.pk, {"imageData": make_data_url(b"\x00" * (3 * 1024 * 1024))})
    assert "imageData" in ei.value.fields
    assert Escort.objects.get(pk=e.pk).photo_reference is None


def test_list_meta_and_paging(service, make_payload):
    for i in range(23):
        service.create_record(make_payload(vehiclePlate=f"B{i:04d}XYZ"))
    records, meta = service.list_records({"page": "3", "perPage": "10"})
    assert len(records) == 3
    assert meta == {"currentPage": 3, "totalPages": 3, "pageSize": 10, "total": 23}
    records, meta = service.list_records({"perPage": "1000"})
    assert meta["pageSize"] == 100 and len(records) == 23


def test_list_rejects_malformed_filters(service):
    with pytest.raises(ValidationError) as ei:
        service.list_records({"status": "archived", "page": "abc", "sortBy": "password"})
    assert set(ei.value.fields) == {"status", "page", "sortBy"}


def test_list_filter_values_are_case_insensitive(service, make_payload):
    service.create_record(make_payload(escortCategory="police"))
    service.create_record(make_payload(escortCategory="ambulance"))
    records, meta = service.list_records({"category": "POLICE", "sameDayOnly": "true"})
    assert meta["total"] == 1
    assert records[0].escort_category == "police"


def test_dashboard_stats_contract(service, make_payload):
    service.create_record(make_payload(escortCategory="police"))
    e = service.create_record(make_payload(escortCategory="ambulance"))
    service.update_status(e.pk, {"status": "verified"})
    stats = service.dashboard_stats()
    assert stats["totalEscorts"] == 2
    assert stats["pendingEscorts"] == 1
    assert stats["verifiedEscorts"] == 1
    assert stats["rejectedEscorts"] == 0
    assert stats["todaySubmissions"] == 2
    assert stats["categoryStats"] == {"police": 1, "ambulance": 1, "private-individual": 0}
    assert stats["statusBreakdown"] == {"pending": 1, "verified": 1, "rejected": 0}
    assert len(stats["recentEscorts"]) == 2
    assert stats["recentEscorts"][0]["escortCategory"] in {"police", "ambulance"}


def test_submission_id_format():
    from datetime import datetime, timezone as dt_tz

    when = datetime(2022, 1, 1, tzinfo=dt_tz.utc)
    assert make_submission_id("b1234abc", when) == "ESC_1640995200_B1234ABC"
