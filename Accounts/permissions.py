from rest_framework import permissions


def is_admin(user):
    """True when the authenticated caller carries the admin role."""
    if not getattr(user, "is_authenticated", False):
        return False
    return getattr(user, "role", None) == "admin"


class IsAdminRole(permissions.BasePermission):
    """Only accounts with role=admin."""
    message = "Admin access required."

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsSelfOrAdmin(permissions.BasePermission):
    """
    Object-level check for account resources: customers may only touch their own
    account, admins any. Expects `obj` to be an Account.
    """
    message = "Access denied."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if is_admin(request.user):
            return True
        return obj.pk == request.user.pk
