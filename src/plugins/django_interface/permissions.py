from rest_framework.permissions import BasePermission


class IsAuthenticatedCrmUser(BasePermission):
    """Allows access only when the upstream authentication resolved a user with a CRM role."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and getattr(user, "is_authenticated", False) and getattr(user, "role", None))
