"""Capability checks shared by every lifecycle operation.

`authorize(actor, resource, action)` is the single place that decides whether a
user may act on a service request, order, deliverable or payment. Rules are
keyed by the resource's model name and the action name and return a
`Decision` instead of raising, so callers can either branch on it or use
`require()` to turn a denial into a `ForbiddenError`.
"""

from dataclasses import dataclass

from .exceptions import ForbiddenError

CLIENT = "client"
DESIGNER = "designer"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


def role_of(user) -> str:
    """Return the profile role of `user` ('client', 'designer' or '')."""
    if not user or not getattr(user, "is_authenticated", False):
        return ""
    prof = getattr(user, "profile", None)
    return getattr(prof, "type", "") if prof else ""


def _is(user, user_id) -> bool:
    return bool(user and user.is_authenticated and user_id == user.id)


def _participates(user, order) -> bool:
    return _is(user, order.client_id) or _is(user, order.designer_id)


# ------------------------------- rules per resource -------------------------------

def _service_request_rule(user, service, action) -> Decision:
    if action == "create":
        if role_of(user) != CLIENT:
            return deny("Only clients can create service requests.")
        return ALLOW
    if action == "browse":
        if role_of(user) != DESIGNER:
            return deny("Access denied. Not authorized as designer.")
        return ALLOW
    if action == "view":
        if _is(user, service.client_id) or role_of(user) == DESIGNER:
            return ALLOW
        return deny("You are not allowed to view this service request.")
    if action in ("update", "delete"):
        if not _is(user, service.client_id):
            return deny("Only the owner of this service request may modify it.")
        return ALLOW
    if action == "apply":
        if role_of(user) != DESIGNER:
            return deny("Only designers can apply for service requests.")
        if _is(user, service.client_id):
            return deny("You cannot apply for your own service request.")
        return ALLOW
    if action == "cancel":
        if service.assigned_to_id is None or not _is(user, service.assigned_to_id):
            return deny("Only the assigned designer may cancel this service.")
        return ALLOW
    return deny(f"Unknown action '{action}'.")


def _order_rule(user, order, action) -> Decision:
    if action in ("view", "update_status", "view_payments"):
        if not _participates(user, order):
            return deny("Not authorized to access this order.")
        return ALLOW
    if action == "submit_deliverable":
        if not _is(user, order.designer_id):
            return deny("Only the designer of this order may submit deliverables.")
        return ALLOW
    if action == "pay":
        if not _is(user, order.client_id):
            return deny("Only the client of this order may pay for it.")
        return ALLOW
    return deny(f"Unknown action '{action}'.")


def _deliverable_rule(user, deliverable, action) -> Decision:
    order = deliverable.order
    if action == "view":
        if not _participates(user, order):
            return deny("You are not authorized to view this deliverable.")
        return ALLOW
    if action in ("resubmit", "delete"):
        if not _is(user, deliverable.designer_id):
            return deny("Only the designer who submitted this deliverable may change it.")
        return ALLOW
    if action == "review":
        if not _is(user, order.client_id):
            return deny("Only the client can review deliverables.")
        return ALLOW
    return deny(f"Unknown action '{action}'.")


def _payment_rule(user, payment, action) -> Decision:
    if action == "view":
        if not _participates(user, payment.order):
            return deny("Not authorized to view this payment.")
        return ALLOW
    return deny(f"Unknown action '{action}'.")


RULES = {
    "servicerequest": _service_request_rule,
    "order": _order_rule,
    "deliverable": _deliverable_rule,
    "payment": _payment_rule,
}


def authorize(actor, resource, action: str) -> Decision:
    """Decide whether `actor` may perform `action` on `resource`.

    `resource` is a model instance, or the model class for actions that do not
    target an existing row (e.g. creating a service request).
    """
    if not actor or not getattr(actor, "is_authenticated", False):
        return deny("Authentication required.")
    rule = RULES.get(resource._meta.model_name)
    if rule is None:
        return deny(f"No authorization rules for '{resource._meta.model_name}'.")
    return rule(actor, resource, action)


def require(actor, resource, action: str) -> None:
    """Raise ForbiddenError unless `authorize` allows the action."""
    decision = authorize(actor, resource, action)
    if not decision:
        raise ForbiddenError(decision.reason)
