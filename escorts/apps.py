from django.apps import AppConfig
from django.conf import settings


class EscortsConfig(AppConfig):
    name = "escorts"
    verbose_name = "Escort registrations"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        if getattr(settings, "ESCORT_SESSION_ACTIVITY", False):
            from .services import activity
            from .signals import escort_api_event

            escort_api_event.connect(activity.record_api_event, dispatch_uid="escorts.session_activity")
