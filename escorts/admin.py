"""
Django admin registration for escort records.
"""
from django.contrib import admin

from .models import Escort


@admin.register(Escort)
class EscortAdmin(admin.ModelAdmin):
    list_display = ("id", "escort_name", "escort_category", "patient_name", "vehicle_plate", "status", "created_at")
    list_filter = ("status", "escort_category", "escort_gender", "api_submission")
    search_fields = ("escort_name", "patient_name", "vehicle_plate", "submission_id")
    readonly_fields = ("submission_id", "source_ip", "created_at", "updated_at")
    ordering = ("-created_at",)
