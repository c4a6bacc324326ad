"""Service requests API permissions.

Request-level role gates. Object-level rules (owner, assigned designer) are
enforced by `common.authorization.authorize` inside the service operations.
"""

from rest_framework.permissions import BasePermission

from common.authorization import CLIENT, DESIGNER, role_of


class IsClientUser(BasePermission):
    """Allows access only to authenticated users with profile.type == 'client'."""

    message = "Only users with type 'client' can create service requests."

    def has_permission(self, request, view):
        return role_of(request.user) == CLIENT


class IsDesignerUser(BasePermission):
    """Allows access only to authenticated users with profile.type == 'designer'."""

    message = "Access denied. Not authorized as designer."

    def has_permission(self, request, view):
        return role_of(request.user) == DESIGNER
