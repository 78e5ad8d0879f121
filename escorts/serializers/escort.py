import html

import bleach
from rest_framework import serializers

from escorts.models import Escort
from escorts.services.photos import InvalidImage, decode_data_url
from escorts.store import SORT_FIELDS

CATEGORY_ALIASES = {
    'polisi': Escort.CATEGORY_POLICE,
    'ambulans': Escort.CATEGORY_AMBULANCE,
    'perorangan': Escort.CATEGORY_PRIVATE,
    'private': Escort.CATEGORY_PRIVATE,
    'private individual': Escort.CATEGORY_PRIVATE,
}
GENDER_ALIASES = {
    'laki-laki': Escort.GENDER_MALE,
    'perempuan': Escort.GENDER_FEMALE,
}

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


class EnumField(serializers.ChoiceField):
    """Case-insensitive choice field that stores the lower-case value."""

    def __init__(self, choices, aliases=None, **kwargs):
        self.aliases = aliases or {}
        super().__init__(choices=choices, **kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip().lower()
            data = self.aliases.get(data, data)
        return super().to_internal_value(data)


class CleanTextField(serializers.CharField):
    """Free text with markup tags stripped before the length checks run.

    Only tags are removed; bleach escapes the remaining text, so it is
    unescaped again and ``&`` or a bare ``<`` are stored as sent.
    """

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return html.unescape(bleach.clean(value, tags=set(), strip=True)).strip()


class DataURLImageField(serializers.Field):
    default_error_messages = {'invalid': 'Invalid image encoding'}

    def to_internal_value(self, data):
        try:
            return decode_data_url(data)
        except InvalidImage as exc:
            raise serializers.ValidationError(str(exc))

    def to_representation(self, value):
        return None


def status_field(**kwargs):
    return EnumField(choices=[c[0] for c in Escort.STATUS_CHOICES], **kwargs)


class EscortWriteSerializer(serializers.Serializer):
    """Create/update payload. Used with ``partial=True`` for updates."""
    escortCategory = EnumField(choices=[c[0] for c in Escort.CATEGORY_CHOICES], aliases=CATEGORY_ALIASES)
    escortName = CleanTextField(min_length=3, max_length=255)
    escortGender = EnumField(choices=[c[0] for c in Escort.GENDER_CHOICES], aliases=GENDER_ALIASES)
    escortPhone = CleanTextField(min_length=10, max_length=20)
    vehiclePlate = CleanTextField(min_length=3, max_length=20)
    patientName = CleanTextField(min_length=3, max_length=255)
    status = status_field(required=False)
    photoData = DataURLImageField(required=False, allow_null=True)

    # Wire name -> column
    FIELD_MAP = {
        'escortCategory': 'escort_category',
        'escortName': 'escort_name',
        'escortGender': 'escort_gender',
        'escortPhone': 'escort_phone',
        'vehiclePlate': 'vehicle_plate',
        'patientName': 'patient_name',
        'status': 'status',
    }

    def to_columns(self) -> dict:
        return {
            self.FIELD_MAP[k]: v for k, v in self.validated_data.items() if k in self.FIELD_MAP
        }


class EscortStatusSerializer(serializers.Serializer):
    status = status_field()


class ImageUploadSerializer(serializers.Serializer):
    imageData = DataURLImageField()


class EscortListQuerySerializer(serializers.Serializer):
    status = status_field(required=False)
    category = EnumField(choices=[c[0] for c in Escort.CATEGORY_CHOICES], aliases=CATEGORY_ALIASES, required=False)
    gender = EnumField(choices=[c[0] for c in Escort.GENDER_CHOICES], aliases=GENDER_ALIASES, required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=255)
    sameDayOnly = serializers.CharField(required=False, allow_blank=True)
    page = serializers.IntegerField(required=False)
    perPage = serializers.IntegerField(required=False)
    sortBy = serializers.ChoiceField(choices=list(SORT_FIELDS), required=False)
    sortOrder = EnumField(choices=['asc', 'desc'], required=False)

    def validate_sameDayOnly(self, v):
        return (v or '').strip().lower() in TRUE_VALUES


class EscortSerializer(serializers.ModelSerializer):
    escortCategory = serializers.CharField(source='escort_category')
    escortName = serializers.CharField(source='escort_name')
    escortGender = serializers.CharField(source='escort_gender')
    escortPhone = serializers.CharField(source='escort_phone')
    vehiclePlate = serializers.CharField(source='vehicle_plate')
    patientName = serializers.CharField(source='patient_name')
    photoReference = serializers.CharField(source='photo_reference', allow_null=True)
    submissionId = serializers.CharField(source='submission_id', allow_null=True)
    sourceIp = serializers.CharField(source='source_ip', allow_null=True)
    apiSubmission = serializers.BooleanField(source='api_submission')
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Escort
        fields = [
            'id', 'status', 'escortCategory', 'escortName', 'escortGender', 'escortPhone',
            'vehiclePlate', 'patientName', 'photoReference', 'submissionId', 'sourceIp',
            'apiSubmission', 'createdAt', 'updatedAt',
        ]
