from rest_framework import permissions

from Accounts.permissions import is_admin


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Allow full write access to the catalog only to admins. Read is allowed for all safe methods.
    Expects authentication to set request.user with `.role` (an Accounts.Account).
    """
    message = "Only admins may modify the catalog."

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_admin(request.user)

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            # deactivated items are only visible to admins
            return obj.is_active or is_admin(request.user)
        return is_admin(request.user)
