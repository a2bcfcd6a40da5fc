from rest_framework.permissions import BasePermission, SAFE_METHODS


class RolePermission(BasePermission):
    """
    Example usage:
      permission_classes = [RolePermission]
      and set on the view: view.allowed_roles = ['admin', 'accountant']
    Read-only requests are let through when view.read_roles is not set.
    If view.allowed_roles is not set, falls back to IsAuthenticated behavior.
    """

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.method in SAFE_METHODS:
            allowed = getattr(view, "read_roles", None)
        else:
            allowed = getattr(view, "allowed_roles", None)
        if allowed is None:
            # no role restriction on this view
            return True
        return request.user.role in allowed


class IsCompanyAdmin(BasePermission):
    message = "Admin privileges are required for this action."

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.is_admin
        )
