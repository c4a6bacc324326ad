"""Service lifecycle operations.

A request moves open -> assigned -> completed | cancelled. Applying assigns
the request and creates its Order in the same transaction; cancelling is done
by the assigned designer.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q

from common import notifications
from common.authorization import require
from common.exceptions import ConflictError, NotFoundError
from orders.models import Order
from .models import ServiceApplication, ServiceRequest

logger = logging.getLogger(__name__)

Status = ServiceRequest.Status

# Fields that stay frozen once a request has left `open`.
FROZEN_AFTER_ASSIGNMENT = ("budget", "deadline")


def _lock_service(service_id) -> ServiceRequest:
    try:
        return ServiceRequest.objects.select_for_update().get(pk=service_id)
    except ServiceRequest.DoesNotExist:
        raise NotFoundError("Service request not found.")


def get_service_request(service_id, actor) -> ServiceRequest:
    try:
        service = ServiceRequest.objects.select_related(
            "client", "category", "assigned_to"
        ).get(pk=service_id)
    except ServiceRequest.DoesNotExist:
        raise NotFoundError("Service request not found.")
    require(actor, service, "view")
    return service


def client_service_requests(client):
    return (
        ServiceRequest.objects.filter(client=client)
        .select_related("category", "assigned_to")
        .order_by("-created_at", "-id")
    )


def browsable_service_requests(designer, category_id=None):
    """Requests a designer can see: open ones, plus the ones assigned to them."""
    require(designer, ServiceRequest, "browse")
    qs = ServiceRequest.objects.filter(
        Q(status=Status.OPEN) | Q(status=Status.ASSIGNED, assigned_to=designer)
    ).select_related("client", "category")
    if category_id is not None:
        qs = qs.filter(category_id=category_id)
    return qs.order_by("-created_at", "-id")


# ------------------------------------- client -------------------------------------

def create_service_request(client, data: dict) -> ServiceRequest:
    require(client, ServiceRequest, "create")
    service = ServiceRequest.objects.create(client=client, status=Status.OPEN, **data)
    logger.info("Service request %s created by client %s", service.id, client.id)
    return service


def update_service_request(service_id, client, data: dict) -> ServiceRequest:
    """Apply a partial update from the owner; budget/deadline freeze after `open`."""
    with transaction.atomic():
        service = _lock_service(service_id)
        require(client, service, "update")
        if service.status != Status.OPEN:
            frozen = sorted(f for f in FROZEN_AFTER_ASSIGNMENT if f in data)
            if frozen:
                raise ConflictError(
                    f"Cannot change {', '.join(frozen)} once the request is {service.status}."
                )
        if service.status == Status.CANCELLED:
            raise ConflictError("Cancelled service requests cannot be edited.")
        for attr, value in data.items():
            setattr(service, attr, value)
        service.save()
    return service


def delete_service_request(service_id, client) -> None:
    with transaction.atomic():
        service = _lock_service(service_id)
        require(client, service, "delete")
        if service.status != Status.OPEN:
            raise ConflictError("Service requests that were already assigned cannot be deleted.")
        service.delete()
    logger.info("Service request %s deleted by client %s", service_id, client.id)


# ------------------------------------ designer ------------------------------------

def apply_for_service(service_id, designer) -> Order:
    """Record the designer's application, assign the request and open its Order."""
    with transaction.atomic():
        service = _lock_service(service_id)
        require(designer, service, "apply")
        if service.applications.filter(designer=designer).exists():
            raise ConflictError("You have already applied for this service.")
        if service.status != Status.OPEN:
            raise ConflictError("This service request is no longer open for applications.")

        try:
            with transaction.atomic():
                ServiceApplication.objects.create(service=service, designer=designer)
        except IntegrityError:
            raise ConflictError("You have already applied for this service.")

        service.status = Status.ASSIGNED
        service.assigned_to = designer
        service.save(update_fields=["status", "assigned_to", "updated_at"])

        order = Order.objects.create(
            service=service,
            client_id=service.client_id,
            designer=designer,
            price=service.budget,
            max_revisions=service.max_revisions,
            status=Order.Status.AWAITING_PAYMENT,
            is_paid=False,
        )
        notifications.application_accepted(order)

    logger.info(
        "Designer %s assigned to service %s; order %s awaiting payment",
        designer.id, service.id, order.id,
    )
    return order


def cancel_service(service_id, designer) -> ServiceRequest:
    """Cancel an assigned request on behalf of its designer.

    An order still awaiting payment is cancelled with it. A paid order is left
    to the participants (update_order_status) since funds have already moved.
    """
    with transaction.atomic():
        # Order row before service row, the same order mark_paid/update_order_status use.
        order = Order.objects.select_for_update().filter(service_id=service_id).first()
        service = _lock_service(service_id)
        require(designer, service, "cancel")
        if service.status == Status.CANCELLED:
            raise ConflictError("This service request is already cancelled.")
        if service.status == Status.COMPLETED:
            raise ConflictError("Completed service requests cannot be cancelled.")

        service.status = Status.CANCELLED
        service.save(update_fields=["status", "updated_at"])

        if order is not None and order.status == Order.Status.AWAITING_PAYMENT and not order.is_paid:
            order.status = Order.Status.CANCELLED
            order.save(update_fields=["status", "updated_at"])
            logger.info("Unpaid order %s cancelled with service %s", order.id, service.id)
        elif order is not None and not order.is_closed:
            logger.warning(
                "Service %s cancelled while paid order %s is %s; left for manual follow-up",
                service.id, order.id, order.status,
            )
        notifications.service_cancelled(service, designer)

    logger.info("Service %s cancelled by designer %s", service.id, designer.id)
    return service
