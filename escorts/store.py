"""
Record store for escort registrations.

``EscortStore`` is the only code that talks to the database for escort
records. Database failures are logged with the operation and record id
and re-raised as ``StorageError``; a missing record is ``NotFoundError``.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from django.db import DatabaseError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from .exceptions import NotFoundError, StorageError
from .models import Escort

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
RECENT_LIMIT = 5

# Wire name -> column
SORT_FIELDS = {
    'id': 'id',
    'status': 'status',
    'escortCategory': 'escort_category',
    'escortName': 'escort_name',
    'patientName': 'patient_name',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}
DEFAULT_SORT = 'createdAt'

UPDATABLE_FIELDS = frozenset({
    'status', 'escort_category', 'escort_name', 'escort_gender', 'escort_phone',
    'vehicle_plate', 'patient_name', 'photo_reference',
})


@dataclass(frozen=True)
class EscortFilters:
    status: Optional[str] = None
    category: Optional[str] = None
    gender: Optional[str] = None
    search: Optional[str] = None
    same_day_only: bool = False


def clamp_paging(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    page = max(1, page or 1)
    page_size = min(MAX_PAGE_SIZE, max(1, page_size or DEFAULT_PAGE_SIZE))
    return page, page_size


@contextmanager
def storage_errors(operation: str, pk=None) -> Iterator[None]:
    try:
        yield
    except DatabaseError as exc:
        logger.exception('escort store %s failed (id=%s): %s', operation, pk, exc)
        raise StorageError() from exc


class EscortStore:

    def insert(self, **fields) -> Escort:
        with storage_errors('insert'):
            escort = Escort(**fields)
            # Enum columns raise StorageError before the check constraint runs
            for name in ('status', 'escort_category', 'escort_gender'):
                allowed = {c[0] for c in Escort._meta.get_field(name).choices}
                if getattr(escort, name) not in allowed:
                    logger.error('escort store insert rejected %s=%r', name, getattr(escort, name))
                    raise StorageError()
            escort.save(force_insert=True)
            return escort

    def get(self, pk) -> Escort:
        with storage_errors('get', pk):
            escort = Escort.objects.filter(pk=pk).first()
        if escort is None:
            raise NotFoundError()
        return escort

    def update(self, pk, fields: dict) -> Escort:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")
        with storage_errors('update', pk):
            with transaction.atomic():
                escort = Escort.objects.select_for_update().filter(pk=pk).first()
                if escort is None:
                    raise NotFoundError()
                for name, value in fields.items():
                    setattr(escort, name, value)
                # Only the supplied columns are written
                escort.save(update_fields=[*fields, 'updated_at'])
        return escort

    def delete(self, pk) -> Escort:
        with storage_errors('delete', pk):
            with transaction.atomic():
                escort = Escort.objects.select_for_update().filter(pk=pk).first()
                if escort is None:
                    raise NotFoundError()
                snapshot_pk = escort.pk
                escort.delete()
                escort.pk = snapshot_pk
        return escort

    def list(self, filters: EscortFilters, sort_by: str = DEFAULT_SORT, sort_order: str = 'desc',
             page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Tuple[List[Escort], int]:
        page, page_size = clamp_paging(page, page_size)
        qs = Escort.objects.all()
        if filters.status:
            qs = qs.filter(status=filters.status)
        if filters.category:
            qs = qs.filter(escort_category=filters.category)
        if filters.gender:
            qs = qs.filter(escort_gender=filters.gender)
        if filters.search:
            term = filters.search
            qs = qs.filter(
                Q(escort_name__icontains=term)
                | Q(patient_name__icontains=term)
                | Q(vehicle_plate__icontains=term)
            )
        if filters.same_day_only:
            qs = qs.filter(created_at__date=timezone.localdate())

        column = SORT_FIELDS.get(sort_by, SORT_FIELDS[DEFAULT_SORT])
        prefix = '' if sort_order == 'asc' else '-'
        ordering = [f'{prefix}{column}']
        if column != 'id':
            ordering.append(f'{prefix}id')
        qs = qs.order_by(*ordering)

        start = (page - 1) * page_size
        with storage_errors('list'):
            total = qs.count()
            records = list(qs[start:start + page_size])
        return records, total

    def aggregate_stats(self) -> dict:
        with storage_errors('stats'):
            by_status = dict(
                Escort.objects.values_list('status').annotate(n=Count('id')).order_by()
            )
            by_category = dict(
                Escort.objects.values_list('escort_category').annotate(n=Count('id')).order_by()
            )
            today = Escort.objects.filter(created_at__date=timezone.localdate()).count()
            recent = list(Escort.objects.order_by('-created_at', '-id')[:RECENT_LIMIT])
        return {
            'total': sum(by_status.values()),
            'by_status': {value: by_status.get(value, 0) for value, _ in Escort.STATUS_CHOICES},
            'by_category': {value: by_category.get(value, 0) for value, _ in Escort.CATEGORY_CHOICES},
            'today': today,
            'recent': recent,
        }
