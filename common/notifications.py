"""Email notifications fired by lifecycle transitions.

Mails are queued with `transaction.on_commit`, so they only go out once the
state change that triggered them is committed. A failing mail is logged and
dropped; it never propagates into, or rolls back, the caller.
"""

import logging
from functools import partial

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

logger = logging.getLogger(__name__)


def _display_name(user) -> str:
    return user.get_full_name() or user.username


def _send(subject: str, message: str, recipient: str) -> None:
    try:
        send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [recipient])
    except Exception:
        logger.exception("Email '%s' to %s could not be sent", subject, recipient)
    else:
        logger.info("Email '%s' sent to %s", subject, recipient)


def dispatch(subject: str, message: str, recipients) -> None:
    """Queue one mail per recipient for after the current transaction commits."""
    for recipient in recipients:
        if not recipient:
            logger.warning("Skipping email '%s': recipient has no address", subject)
            continue
        transaction.on_commit(partial(_send, subject, message, recipient))


# ------------------------------- service lifecycle -------------------------------

def application_accepted(order) -> None:
    service, designer, client = order.service, order.designer, order.client
    dispatch(
        "Your application has been accepted",
        (
            f"Dear {_display_name(designer)},\n\n"
            f'Your application for service "{service.title}" has been accepted.\n'
            f"Order ID: {order.id}\nPrice: {order.price}\nStatus: {order.status}\n\n"
            "Please wait for the client to complete the payment before starting work."
        ),
        [designer.email],
    )
    payment_link = f"{settings.MARKETPLACE['FRONTEND_URL']}/orders/{order.id}/pay"
    dispatch(
        "A designer has been assigned to your service",
        (
            f"Dear {_display_name(client)},\n\n"
            f'{_display_name(designer)} has been assigned to your service "{service.title}".\n'
            f"Order ID: {order.id}\nPrice: {order.price}\nStatus: {order.status}\n\n"
            f"Next step: complete the payment to start this project: {payment_link}"
        ),
        [client.email],
    )


def service_cancelled(service, designer) -> None:
    client = service.client
    dispatch(
        f"Service Cancellation: {service.title}",
        (
            f"Hello {_display_name(client)},\n\n"
            f"The service {service.title} (ID: {service.id}) has been cancelled by "
            f"the designer {_display_name(designer)}.\n"
            "Please contact the administrator if you have any questions."
        ),
        [client.email],
    )


# ------------------------------------ payments ------------------------------------

def payment_received(order, payment) -> None:
    details = (
        f"Order ID: {order.id}\nAmount: {payment.amount}\n"
        f"Payment Method: {payment.payment_method}\nStatus: {payment.transaction_status}\n"
    )
    dispatch(
        "Payment Received for Your Service",
        (
            f"Dear {_display_name(order.designer)},\n\n"
            f"The client has made a payment for your service.\n{details}\n"
            "You can now start working on this project."
        ),
        [order.designer.email],
    )
    dispatch(
        "Payment Confirmation",
        (
            f"Dear {_display_name(order.client)},\n\n"
            f"Your payment has been received.\n{details}\n"
            "The designer will now start working on your project."
        ),
        [order.client.email],
    )


# ---------------------------------- deliverables ----------------------------------

def deliverable_submitted(deliverable) -> None:
    order = deliverable.order
    dispatch(
        f"New deliverable for order #{order.id}",
        (
            f"Dear {_display_name(order.client)},\n\n"
            f'{_display_name(deliverable.designer)} submitted "{deliverable.title}" '
            f"for order #{order.id}. Please review it."
        ),
        [order.client.email],
    )


def deliverable_reviewed(deliverable) -> None:
    order = deliverable.order
    if deliverable.status == "REJECTED":
        dispatch(
            f"Action Required: Revision Request for Deliverable #{deliverable.id}",
            (
                f"Dear {_display_name(deliverable.designer)},\n\n"
                f'The client requested a revision of "{deliverable.title}".\n'
                f"Feedback: {deliverable.feedback or '-'}\n"
                f"Revisions used: {order.revision_count} of {order.max_revisions}"
            ),
            [deliverable.designer.email],
        )
        return
    dispatch(
        f"Great News! Deliverable #{deliverable.id} Approved",
        (
            f"Dear {_display_name(deliverable.designer)},\n\n"
            f'The client approved "{deliverable.title}". Order #{order.id} is completed.'
        ),
        [deliverable.designer.email],
    )
    dispatch(
        f"Confirmation: You've Approved Deliverable #{deliverable.id}",
        (
            f"Dear {_display_name(order.client)},\n\n"
            f'You approved "{deliverable.title}". Order #{order.id} is completed.'
        ),
        [order.client.email],
    )
