"""Order lifecycle operations.

`update_order_status` is the participant-facing transition; `mark_paid` is the
internal transition driven only by a settled payment. Both run as a single
locked read-modify-write so concurrent requests cannot double-count revisions
or flip `is_paid` twice.
"""

import logging

from django.db import transaction
from django.db.models import Case, F, Q, Value, When
from django.utils import timezone

from common.authorization import require
from common.exceptions import ConflictError, NotFoundError, ValidationError
from service_requests.models import ServiceRequest
from .models import Order

logger = logging.getLogger(__name__)

Status = Order.Status

# Statuses a participant may request through update_order_status.
UPDATABLE_STATUSES = {
    Status.IN_PROGRESS.value,
    Status.REVISION.value,
    Status.COMPLETED.value,
    Status.CANCELLED.value,
}

# Keyed by plain string values: Order.status is a str once loaded from the db.
TRANSITIONS = {
    Status.AWAITING_PAYMENT.value: {Status.CANCELLED.value},
    Status.IN_PROGRESS.value: {
        Status.REVISION.value,
        Status.COMPLETED.value,
        Status.CANCELLED.value,
    },
    Status.REVISION.value: {
        Status.IN_PROGRESS.value,
        Status.COMPLETED.value,
        Status.CANCELLED.value,
    },
    Status.COMPLETED.value: set(),
    Status.CANCELLED.value: set(),
}


def user_orders_queryset(user):
    """Orders the user participates in (as client OR designer), newest first."""
    if not user or not user.is_authenticated:
        return Order.objects.none()
    return (
        Order.objects.filter(Q(client=user) | Q(designer=user))
        .select_related("service", "client", "designer")
        .order_by("-created_at", "-id")
    )


def get_order(order_id, actor) -> Order:
    try:
        order = Order.objects.select_related("service", "client", "designer").get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFoundError("Order not found.")
    require(actor, order, "view")
    return order


def lock_order(order_id) -> Order:
    """Fetch the order with a row lock; must be called inside a transaction."""
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFoundError("Order not found.")


def complete_service(order: Order) -> None:
    """Close the order's service request once the order itself is completed."""
    ServiceRequest.objects.filter(
        pk=order.service_id, status=ServiceRequest.Status.ASSIGNED
    ).update(status=ServiceRequest.Status.COMPLETED, updated_at=timezone.now())


def update_order_status(order_id, new_status, actor) -> Order:
    """Move an order to `new_status` on behalf of its client or designer.

    Entering `revision` from `in_progress` counts one revision. Requesting the
    status the order already has is a no-op; any other move outside
    TRANSITIONS raises ConflictError.
    """
    if new_status not in UPDATABLE_STATUSES:
        raise ValidationError("Invalid status value.")

    with transaction.atomic():
        order = lock_order(order_id)
        require(actor, order, "update_status")

        if order.status == new_status:
            return order
        if new_status not in TRANSITIONS[order.status]:
            if order.status == Status.AWAITING_PAYMENT:
                raise ConflictError("Order has not been paid yet.")
            raise ConflictError(
                f"Cannot change order status from '{order.status}' to '{new_status}'."
            )

        previous = order.status
        if new_status == Status.REVISION and previous == Status.IN_PROGRESS:
            order.revision_count += 1
        order.status = new_status
        order.save(update_fields=["status", "revision_count", "updated_at"])
        if new_status == Status.COMPLETED:
            complete_service(order)

    logger.info(
        "Order %s: %s -> %s by user %s (revisions=%s)",
        order.id, previous, new_status, actor.id, order.revision_count,
    )
    return order


def mark_paid(order_id) -> bool:
    """Flip `is_paid` and start the work, at most once per order.

    Returns True only for the call that performed the flip, so the caller can
    attach side effects (emails) to exactly one settlement. Orders that left
    `awaiting_payment` in the meantime keep their status.
    """
    with transaction.atomic():
        flipped = Order.objects.filter(pk=order_id, is_paid=False).update(
            is_paid=True,
            status=Case(
                When(status=Status.AWAITING_PAYMENT, then=Value(Status.IN_PROGRESS)),
                default=F("status"),
            ),
            updated_at=timezone.now(),
        )
        if not flipped and not Order.objects.filter(pk=order_id).exists():
            raise NotFoundError("Order not found.")

    if flipped:
        logger.info("Order %s marked as paid", order_id)
    else:
        logger.info("Order %s already paid; settlement ignored", order_id)
    return bool(flipped)
