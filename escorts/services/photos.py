"""
Escort photo handling.

Photos arrive as data URLs (``data:<mime>;base64,<payload>``), are checked
against the configured type allow-list and size limit, and are written to
Django's default storage under ``escorts/YYYY/MM/``. The record keeps only
the storage name.
"""
from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_MIME = 'image/jpeg'


class InvalidImage(ValueError):
    pass


@dataclass(frozen=True)
class DecodedImage:
    content: bytes
    mime_type: str
    extension: str


def _allowed_types() -> dict:
    return getattr(settings, 'ESCORT_PHOTO_TYPES', {DEFAULT_MIME: '.jpg'})


def _human_size(n: int) -> str:
    if n % (1024 * 1024) == 0:
        return f'{n // (1024 * 1024)} MB'
    return f'{n} bytes'


def decode_data_url(value: str) -> DecodedImage:
    """Decode and check a data URL. Raises ``InvalidImage``."""
    if not isinstance(value, str) or ',' not in value:
        raise InvalidImage('Invalid image encoding')
    header, payload = value.split(',', 1)
    mime = DEFAULT_MIME
    if header.startswith('data:'):
        mime = header[len('data:'):].split(';', 1)[0].strip().lower() or DEFAULT_MIME
        if ';base64' not in header:
            raise InvalidImage('Invalid image encoding')
    types = _allowed_types()
    if mime not in types:
        raise InvalidImage(f'Unsupported image type: {mime}')
    try:
        content = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImage('Invalid image encoding')
    if not content:
        raise InvalidImage('Invalid image encoding')
    limit = settings.ESCORT_PHOTO_MAX_BYTES
    if len(content) > limit:
        raise InvalidImage(f'Image too large (max {_human_size(limit)})')
    return DecodedImage(content=content, mime_type=mime, extension=types[mime])


def save_photo(image: DecodedImage) -> str:
    now = timezone.now()
    name = f"escorts/{now:%Y/%m}/escort_{uuid.uuid4().hex}{image.extension}"
    return default_storage.save(name, ContentFile(image.content))


def load_photo(name: str) -> Optional[bytes]:
    """Return the stored bytes, or None when the file is gone."""
    if not name or not default_storage.exists(name):
        return None
    with default_storage.open(name, 'rb') as fh:
        return fh.read()


def content_type_for(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_MIME


def encode_data_url(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


def delete_photo(name: Optional[str]) -> bool:
    """Best-effort removal; failures are logged and reported as False."""
    if not name:
        return False
    try:
        default_storage.delete(name)
    except OSError as exc:
        logger.warning('could not delete escort photo %s: %s', name, exc)
        return False
    return True
