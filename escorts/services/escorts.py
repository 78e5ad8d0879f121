"""
Record service: validation, photo handling and business rules for escorts.

Both API flavours call into ``EscortService`` with raw request payloads so
that validation, messages and side effects are identical whichever backend
serves the request.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from django.conf import settings
from django.utils import timezone

from escorts import envelope
from escorts.exceptions import NotFoundError, ValidationError, flatten_errors
from escorts.models import Escort
from escorts.serializers.escort import (
    EscortListQuerySerializer,
    EscortSerializer,
    EscortStatusSerializer,
    EscortWriteSerializer,
    ImageUploadSerializer,
)
from escorts.services import photos
from escorts.store import DEFAULT_SORT, EscortFilters, EscortStore, clamp_paging

logger = logging.getLogger(__name__)

IMAGE_NOT_FOUND = 'Image not found'


def _validate(serializer):
    if not serializer.is_valid():
        raise ValidationError(flatten_errors(serializer.errors))
    return serializer.validated_data


def make_submission_id(vehicle_plate: str, when=None) -> str:
    when = when or timezone.now()
    return f"ESC_{int(when.timestamp())}_{vehicle_plate.upper()}"


def serialize(escort: Escort) -> dict:
    return EscortSerializer(escort).data


class EscortService:

    def __init__(self, store: Optional[EscortStore] = None):
        self.store = store or EscortStore()

    # ------------------------------------------------------------------ create
    def create_record(self, payload, source_ip: Optional[str] = None) -> Escort:
        s = EscortWriteSerializer(data=payload)
        data = _validate(s)
        columns = s.to_columns()
        columns.setdefault('status', Escort.STATUS_PENDING)

        photo_name = None
        image = data.get('photoData')
        if image is not None:
            photo_name = photos.save_photo(image)
        try:
            escort = self.store.insert(
                **columns,
                photo_reference=photo_name,
                submission_id=make_submission_id(columns['vehicle_plate']),
                source_ip=source_ip or None,
                api_submission=True,
            )
        except Exception:
            # Nothing persisted if the row could not be written
            photos.delete_photo(photo_name)
            raise
        logger.info('escort %s created (submission %s)', escort.pk, escort.submission_id)
        return escort

    # -------------------------------------------------------------------- read
    def list_records(self, params) -> Tuple[list, dict]:
        q = _validate(EscortListQuerySerializer(data=params))
        filters = EscortFilters(
            status=q.get('status'),
            category=q.get('category'),
            gender=q.get('gender'),
            search=(q.get('search') or '').strip() or None,
            same_day_only=bool(q.get('sameDayOnly')),
        )
        page, page_size = clamp_paging(q.get('page'), q.get('perPage'))
        records, total = self.store.list(
            filters,
            sort_by=q.get('sortBy') or DEFAULT_SORT,
            sort_order=q.get('sortOrder') or 'desc',
            page=page,
            page_size=page_size,
        )
        return records, envelope.page_meta(page, page_size, total)

    def get_record(self, pk) -> Escort:
        return self.store.get(pk)

    # ------------------------------------------------------------------ update
    def update_record(self, pk, payload) -> Escort:
        current = self.store.get(pk)
        s = EscortWriteSerializer(data=payload, partial=True)
        data = _validate(s)
        columns = s.to_columns()
        new_photo = None
        if data.get('photoData') is not None:
            new_photo = photos.save_photo(data['photoData'])
            columns['photo_reference'] = new_photo
        if not columns:
            return current
        try:
            escort = self.store.update(pk, columns)
        except Exception:
            photos.delete_photo(new_photo)
            raise
        if new_photo:
            self._replaced(current.photo_reference, new_photo)
        logger.info('escort %s updated: %s', pk, ', '.join(sorted(columns)))
        return escort

    def update_status(self, pk, payload) -> Escort:
        self.store.get(pk)
        data = _validate(EscortStatusSerializer(data=payload))
        escort = self.store.update(pk, {'status': data['status']})
        logger.info('escort %s status set to %s', pk, escort.status)
        return escort

    def upload_image(self, pk, payload) -> Escort:
        current = self.store.get(pk)
        data = _validate(ImageUploadSerializer(data=payload))
        name = photos.save_photo(data['imageData'])
        try:
            escort = self.store.update(pk, {'photo_reference': name})
        except Exception:
            photos.delete_photo(name)
            raise
        self._replaced(current.photo_reference, name)
        logger.info('escort %s photo replaced', pk)
        return escort

    def _replaced(self, old: Optional[str], new: str) -> None:
        if old and old != new and settings.ESCORT_DELETE_REPLACED_PHOTOS:
            photos.delete_photo(old)

    # ------------------------------------------------------------------ delete
    def delete_record(self, pk) -> Escort:
        escort = self.store.delete(pk)
        if escort.photo_reference:
            photos.delete_photo(escort.photo_reference)
        logger.info('escort %s deleted', pk)
        return escort

    # ------------------------------------------------------------------ images
    def get_image_bytes(self, pk) -> Tuple[bytes, str]:
        escort = self.store.get(pk)
        content = photos.load_photo(escort.photo_reference) if escort.photo_reference else None
        if content is None:
            if escort.photo_reference:
                logger.warning('escort %s photo %s missing from storage', pk, escort.photo_reference)
            raise NotFoundError(IMAGE_NOT_FOUND)
        return content, photos.content_type_for(escort.photo_reference)

    def get_image_encoded(self, pk) -> str:
        content, content_type = self.get_image_bytes(pk)
        return photos.encode_data_url(content, content_type)

    # ------------------------------------------------------------------- stats
    def dashboard_stats(self) -> dict:
        agg = self.store.aggregate_stats()
        by_status = agg['by_status']
        return {
            'totalEscorts': agg['total'],
            'pendingEscorts': by_status[Escort.STATUS_PENDING],
            'verifiedEscorts': by_status[Escort.STATUS_VERIFIED],
            'rejectedEscorts': by_status[Escort.STATUS_REJECTED],
            'todaySubmissions': agg['today'],
            'categoryStats': agg['by_category'],
            'statusBreakdown': by_status,
            'recentEscorts': [serialize(e) for e in agg['recent']],
        }


def client_ip(request) -> Optional[str]:
    if getattr(settings, 'TRUST_X_FORWARDED_FOR', False):
        forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
        if forwarded:
            return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR') or None
