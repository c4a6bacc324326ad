"""Payment settlement.

Clients obtain a Snap token for an unpaid order; the gateway later calls the
webhook, which reconciles the notification into a Payment row keyed by the
gateway reference. A settled payment marks the order paid exactly once, so a
replayed notification updates the Payment but never re-sends the emails.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from common import notifications
from common.authorization import require
from common.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from orders.models import Order
from orders.services import lock_order, mark_paid
from .gateway import MidtransGateway, build_reference, parse_order_reference, verify_signature
from .models import Payment, PaymentNotification

logger = logging.getLogger(__name__)

KNOWN_METHODS = {value for value, _ in Payment.Method.choices}
KNOWN_STATUSES = {value for value, _ in Payment.TransactionStatus.choices}


def _to_decimal(value):
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


def _gross_amount(amount: Decimal):
    # Snap expects a JSON number; IDR amounts are whole numbers.
    return int(amount) if amount == amount.to_integral_value() else float(amount)


def _payment_method(raw_type) -> str:
    return raw_type if raw_type in KNOWN_METHODS else Payment.Method.OTHER.value


def _transaction_status(raw_status) -> str:
    if raw_status in KNOWN_STATUSES:
        return raw_status
    logger.warning("Unknown transaction status %r stored as pending", raw_status)
    return Payment.TransactionStatus.PENDING.value


# ----------------------------------- token -----------------------------------

def _default_item_details(order: Order, gross):
    return [
        {
            "id": str(order.service_id),
            "price": gross,
            "quantity": 1,
            "name": (order.service.title or "Design Service")[:50],
        }
    ]


def _default_customer_details(order: Order):
    client = order.client
    return {
        "first_name": client.first_name or client.username or "Customer",
        "last_name": client.last_name or "",
        "email": client.email,
    }


def generate_token(order_id, amount, actor, item_details=None, customer_details=None, gateway=None) -> dict:
    """Create a Snap transaction for the order's client. Does not touch the order."""
    try:
        order = Order.objects.select_related("service", "client").get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFoundError("Order not found.")
    require(actor, order, "pay")

    amount = _to_decimal(amount) if amount not in (None, "") else None
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be a positive number.")
    if order.is_paid:
        raise ConflictError("Order is already paid.")
    if order.status == Order.Status.CANCELLED:
        raise ConflictError("Order is cancelled.")

    gateway = gateway or MidtransGateway.from_settings()
    gross = _gross_amount(amount)
    reference = build_reference(order.id, settings.PAYMENT_GATEWAY["REFERENCE_PREFIX"])
    parameters = {
        "transaction_details": {"order_id": reference, "gross_amount": gross},
        "credit_card": {"secure": True},
        "item_details": item_details or _default_item_details(order, gross),
        "customer_details": customer_details or _default_customer_details(order),
    }
    result = gateway.create_transaction(parameters)
    logger.info("Payment token issued for order %s (reference %s)", order.id, reference)
    return {
        "token": result["token"],
        "redirect_url": result["redirect_url"],
        "client_key": gateway.client_key,
    }


# -------------------------------- notifications --------------------------------

def reconcile_notification(raw: dict) -> Payment:
    """Apply one gateway notification to its Payment and, if settled, its Order.

    Safe to replay: the Payment is found by reference and only overwritten, and
    `mark_paid` flips the order (and sends the emails) at most once.
    """
    conf = settings.PAYMENT_GATEWAY
    if conf["VERIFY_SIGNATURE"] and not verify_signature(raw, conf["SERVER_KEY"]):
        raise ForbiddenError("Invalid notification signature.")

    reference = str(raw.get("order_id") or "")
    order_id = parse_order_reference(reference, conf["REFERENCE_PREFIX"])
    if order_id is None:
        raise NotFoundError("Order not found.")

    transaction_status = _transaction_status(raw.get("transaction_status"))
    fraud_status = str(raw.get("fraud_status") or "")

    with transaction.atomic():
        order = lock_order(order_id)
        payment, created = Payment.objects.select_for_update().get_or_create(
            reference=reference,
            defaults={
                "order": order,
                "client_id": order.client_id,
                "amount": _to_decimal(raw.get("gross_amount")) or order.price,
                "payment_method": _payment_method(raw.get("payment_type")),
                "transaction_status": transaction_status,
                "fraud_status": fraud_status,
                "gateway_response": raw,
            },
        )
        if not created:
            payment.transaction_status = transaction_status
            payment.fraud_status = fraud_status
            payment.gateway_response = {**(payment.gateway_response or {}), **raw}
            if payment.payment_method == Payment.Method.OTHER:
                payment.payment_method = _payment_method(raw.get("payment_type"))
            payment.save()

        if payment.is_settled and mark_paid(order.id):
            order.refresh_from_db()
            if order.status == Order.Status.IN_PROGRESS:
                notifications.payment_received(order, payment)
            else:
                logger.warning(
                    "Settlement %s recorded for order %s which is %s; refund needs manual follow-up",
                    reference, order.id, order.status,
                )

    logger.info(
        "Notification for %s applied: %s (payment %s, %s)",
        reference, transaction_status, payment.id, "created" if created else "updated",
    )
    return payment


def handle_notification(raw) -> PaymentNotification:
    """Webhook entry point: store the payload, reconcile it, record the outcome.

    Never raises; the gateway is always acknowledged and failures stay
    inspectable on the returned PaymentNotification.
    """
    payload = raw if isinstance(raw, dict) else {"raw": raw}
    record = PaymentNotification.objects.create(
        reference=str(payload.get("order_id") or "")[:100],
        payload=payload,
    )
    try:
        reconcile_notification(payload)
    except DomainError as e:
        record.status = PaymentNotification.Status.FAILED
        record.error_message = str(e.detail)
        logger.warning("Notification %s for %s rejected: %s", record.id, record.reference, e.detail)
    except Exception as e:
        record.status = PaymentNotification.Status.FAILED
        record.error_message = str(e) or e.__class__.__name__
        logger.exception("Notification %s for %s failed", record.id, record.reference)
    else:
        record.status = PaymentNotification.Status.PROCESSED
    record.processed_at = timezone.now()
    record.save(update_fields=["status", "error_message", "processed_at"])
    return record


# ---------------------------------- read side ----------------------------------

def latest_payment_for_order(order_id, actor) -> Payment:
    try:
        order = Order.objects.get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFoundError("Order not found.")
    require(actor, order, "view_payments")
    payment = order.payments.order_by("-created_at", "-id").first()
    if payment is None:
        raise NotFoundError("Payment not found for this order.")
    return payment


def user_payments(user):
    """Payments on orders the user takes part in, newest first."""
    return (
        Payment.objects.filter(Q(order__client=user) | Q(order__designer=user))
        .select_related("order")
        .order_by("-created_at", "-id")
    )
