"""
Database models for the escort registration system.

An escort record captures who brought a patient to the emergency
department: the escort's category, identity, contact details and vehicle,
the patient's name, an optional photo and a verification status.
"""
from __future__ import annotations

from django.db import models
from django.db.models import Q


class Escort(models.Model):
    """A single escort registration.

    Enumerated columns hold lower-case canonical values and are guarded by
    check constraints so writes that bypass the serializers still cannot
    store values outside the allowed sets.
    """
    STATUS_PENDING = 'pending'
    STATUS_VERIFIED = 'verified'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'pending'),
        (STATUS_VERIFIED, 'verified'),
        (STATUS_REJECTED, 'rejected'),
    )

    CATEGORY_POLICE = 'police'
    CATEGORY_AMBULANCE = 'ambulance'
    CATEGORY_PRIVATE = 'private-individual'
    CATEGORY_CHOICES = (
        (CATEGORY_POLICE, 'police'),
        (CATEGORY_AMBULANCE, 'ambulance'),
        (CATEGORY_PRIVATE, 'private-individual'),
    )

    GENDER_MALE = 'male'
    GENDER_FEMALE = 'female'
    GENDER_CHOICES = (
        (GENDER_MALE, 'male'),
        (GENDER_FEMALE, 'female'),
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    escort_category = models.CharField(max_length=32, choices=CATEGORY_CHOICES)
    escort_name = models.CharField(max_length=255)
    escort_gender = models.CharField(max_length=16, choices=GENDER_CHOICES)
    escort_phone = models.CharField(max_length=20)
    vehicle_plate = models.CharField(max_length=20)
    patient_name = models.CharField(max_length=255)
    photo_reference = models.CharField(max_length=255, blank=True, null=True)
    submission_id = models.CharField(max_length=64, blank=True, null=True)
    source_ip = models.GenericIPAddressField(blank=True, null=True)
    api_submission = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status'], name='escort_status_idx'),
            models.Index(fields=['escort_category'], name='escort_category_idx'),
            models.Index(fields=['created_at'], name='escort_created_at_idx'),
            models.Index(fields=['submission_id'], name='escort_submission_id_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(status__in=['pending', 'verified', 'rejected']),
                name='escort_status_valid',
            ),
            models.CheckConstraint(
                condition=Q(escort_category__in=['police', 'ambulance', 'private-individual']),
                name='escort_category_valid',
            ),
            models.CheckConstraint(
                condition=Q(escort_gender__in=['male', 'female']),
                name='escort_gender_valid',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.escort_name} ({self.escort_category}) for {self.patient_name} [{self.status}]"
