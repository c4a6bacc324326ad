"""Deliverable review workflow.

PENDING -> APPROVED (terminal) | REJECTED -> (resubmit) -> PENDING. Each
operation locks the order row first and the deliverable second, so a review
racing a resubmission (or a second review) is serialised on the order.

Files follow acquire-then-release: a new upload is stored before the database
points at it, and the file it replaces is deleted only after that change has
committed. If the database step fails, the new upload is removed instead.
"""

import logging
from functools import partial

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from common import notifications
from common.authorization import require
from common.exceptions import ConflictError, NotFoundError, ValidationError
from orders.models import Order
from orders.services import complete_service, get_order, lock_order
from .models import Deliverable
from .storage import deliverable_storage

logger = logging.getLogger(__name__)

Status = Deliverable.Status
REVIEW_DECISIONS = {Status.APPROVED.value, Status.REJECTED.value}


# ----------------------------- helpers (module-level) -----------------------------

def _validate_upload(upload):
    if upload is None:
        raise ValidationError("File is required.")
    limit = settings.MARKETPLACE["DELIVERABLE_MAX_UPLOAD_SIZE"]
    if getattr(upload, "size", 0) > limit:
        raise ValidationError(f"File too large (max {limit} bytes).")


def _ensure_accepting_work(order: Order):
    if order.status in (Order.Status.IN_PROGRESS, Order.Status.REVISION):
        return
    if order.status == Order.Status.AWAITING_PAYMENT:
        raise ConflictError("Order has not been paid yet.")
    raise ConflictError(f"Order is {order.status}; deliverables can no longer be changed.")


def _mark_awaiting_review(order: Order):
    """A pending deliverable means the client has to act: in_progress -> revision."""
    if order.status == Order.Status.IN_PROGRESS:
        order.status = Order.Status.REVISION
        order.save(update_fields=["status", "updated_at"])


def _lock_pair(deliverable_id):
    """Lock the deliverable's order, then the deliverable (inside a transaction)."""
    order_id = (
        Deliverable.objects.filter(pk=deliverable_id)
        .values_list("order_id", flat=True)
        .first()
    )
    if order_id is None:
        raise NotFoundError("Deliverable not found.")
    order = lock_order(order_id)
    deliverable = Deliverable.objects.select_for_update().filter(pk=deliverable_id).first()
    if deliverable is None:
        raise NotFoundError("Deliverable not found.")
    deliverable.order = order
    return order, deliverable


def _check_resubmittable(deliverable: Deliverable, order: Order):
    if deliverable.status == Status.APPROVED:
        raise ConflictError("Cannot update an approved deliverable.")
    _ensure_accepting_work(order)


# ------------------------------------ read side ------------------------------------

def get_deliverable(deliverable_id, actor) -> Deliverable:
    try:
        deliverable = Deliverable.objects.select_related("order", "designer").get(pk=deliverable_id)
    except Deliverable.DoesNotExist:
        raise NotFoundError("Deliverable not found.")
    require(actor, deliverable, "view")
    return deliverable


def order_deliverables(order_id, actor):
    order = get_order(order_id, actor)
    return order.deliverables.all().order_by("-submitted_at", "-id")


def designer_deliverables(designer):
    return (
        Deliverable.objects.filter(designer=designer)
        .select_related("order")
        .order_by("-submitted_at", "-id")
    )


def client_deliverables(client):
    return (
        Deliverable.objects.filter(order__client=client)
        .select_related("order", "designer")
        .order_by("-submitted_at", "-id")
    )


# ---------------------------------- state changes ----------------------------------

def submit_deliverable(order_id, designer, upload, title="", description="") -> Deliverable:
    """Store the file and create a PENDING deliverable for the order."""
    _validate_upload(upload)
    with transaction.atomic():
        order = lock_order(order_id)
        require(designer, order, "submit_deliverable")
        _ensure_accepting_work(order)

    stored = deliverable_storage.put(order_id, upload)
    try:
        with transaction.atomic():
            order = lock_order(order_id)
            _ensure_accepting_work(order)
            deliverable = Deliverable.objects.create(
                order=order,
                designer=designer,
                title=title or "",
                description=description or "",
                file_url=stored.url,
                file_handle=stored.handle,
                status=Status.PENDING,
                submitted_at=timezone.now(),
            )
            _mark_awaiting_review(order)
            notifications.deliverable_submitted(deliverable)
    except Exception:
        deliverable_storage.delete(stored.handle)
        raise

    logger.info("Deliverable %s submitted for order %s", deliverable.id, order_id)
    return deliverable


def resubmit_deliverable(deliverable_id, designer, upload=None, title=None, description=None) -> Deliverable:
    """Reset a PENDING/REJECTED deliverable to PENDING, optionally with a new file."""
    if upload is not None:
        _validate_upload(upload)
    with transaction.atomic():
        order, deliverable = _lock_pair(deliverable_id)
        require(designer, deliverable, "resubmit")
        _check_resubmittable(deliverable, order)

    stored = deliverable_storage.put(order.id, upload) if upload is not None else None
    try:
        with transaction.atomic():
            order, deliverable = _lock_pair(deliverable_id)
            _check_resubmittable(deliverable, order)

            old_handle = None
            if stored is not None:
                old_handle = deliverable.file_handle
                deliverable.file_url = stored.url
                deliverable.file_handle = stored.handle
            if title:
                deliverable.title = title
            if description:
                deliverable.description = description
            deliverable.status = Status.PENDING
            deliverable.submitted_at = timezone.now()
            deliverable.save()
            _mark_awaiting_review(order)
            if old_handle:
                transaction.on_commit(partial(deliverable_storage.delete, old_handle))
    except Exception:
        if stored is not None:
            deliverable_storage.delete(stored.handle)
        raise

    logger.info("Deliverable %s resubmitted for order %s", deliverable.id, order.id)
    return deliverable


def review_deliverable(deliverable_id, client, decision, feedback="") -> Deliverable:
    """Approve or reject a deliverable and drive the order accordingly.

    Rejection counts one revision; once the order has used `max_revisions`
    it is force-completed instead of going back to `revision`.
    """
    if decision not in REVIEW_DECISIONS:
        raise ValidationError("Status must be either APPROVED or REJECTED.")

    with transaction.atomic():
        order, deliverable = _lock_pair(deliverable_id)
        require(client, deliverable, "review")
        if deliverable.status == Status.APPROVED:
            raise ConflictError("Approved deliverables cannot be reviewed again.")
        if order.status == Order.Status.CANCELLED:
            raise ConflictError("Order is cancelled.")

        deliverable.status = decision
        deliverable.feedback = feedback or ""
        deliverable.reviewed_at = timezone.now()
        deliverable.save(update_fields=["status", "feedback", "reviewed_at", "updated_at"])

        if decision == Status.APPROVED:
            order.status = Order.Status.COMPLETED
        else:
            order.revision_count += 1
            if order.revision_count >= order.max_revisions or order.status == Order.Status.COMPLETED:
                order.status = Order.Status.COMPLETED
            else:
                order.status = Order.Status.REVISION
        order.save(update_fields=["status", "revision_count", "updated_at"])
        if order.status == Order.Status.COMPLETED:
            complete_service(order)
        notifications.deliverable_reviewed(deliverable)

    logger.info(
        "Deliverable %s %s; order %s is %s (revisions %s/%s)",
        deliverable.id, decision, order.id, order.status,
        order.revision_count, order.max_revisions,
    )
    return deliverable


def delete_deliverable(deliverable_id, designer) -> None:
    """Delete a PENDING deliverable; its file is removed after the commit."""
    with transaction.atomic():
        _, deliverable = _lock_pair(deliverable_id)
        require(designer, deliverable, "delete")
        if deliverable.status != Status.PENDING:
            raise ConflictError("Cannot delete a deliverable that has been reviewed.")
        handle = deliverable.file_handle
        deliverable.delete()
        transaction.on_commit(partial(deliverable_storage.delete, handle))
    logger.info("Deliverable %s deleted by designer %s", deliverable_id, designer.id)
