from rest_framework import permissions


class HasRole(permissions.BasePermission):
    """
    Authenticated users whose role is in the view's ``allowed_roles``.
    A view without ``allowed_roles`` only needs an authenticated user.
    """
    message = 'Insufficient permissions'

    def has_permission(self, request, view):
        user = request.user
        if user is None or not getattr(user, 'is_authenticated', False):
            return False
        allowed = getattr(view, 'allowed_roles', None)
        if not allowed:
            return True
        return user.role_name in allowed
