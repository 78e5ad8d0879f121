"""
Permission and throttle classes shared by both API flavours.
"""
from rest_framework.permissions import BasePermission
from rest_framework.throttling import AnonRateThrottle


class IsSubmitOrAuthenticated(BasePermission):
    """Anyone may register an escort (POST); everything else needs a signed-in caller."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method == "POST":
            return True
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated)


class SubmitRateThrottle(AnonRateThrottle):
    """Limit anonymous registrations per client address."""
    scope = "escort_submit"

    def allow_request(self, request, view):
        if request.method != "POST":
            return True
        return super().allow_request(request, view)
