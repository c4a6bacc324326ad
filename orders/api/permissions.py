"""Orders API permissions.

Object-level permission used by the order read endpoints. It defers to
`common.authorization.authorize`, the same check the lifecycle operations use.
"""

from rest_framework.permissions import BasePermission

from common.authorization import authorize


class IsOrderParticipant(BasePermission):
    """Allows access only to the client or the designer of the order."""

    message = "Not authorized to access this order."

    def has_object_permission(self, request, view, obj):
        decision = authorize(request.user, obj, "view")
        if not decision:
            self.message = decision.reason
        return bool(decision)
