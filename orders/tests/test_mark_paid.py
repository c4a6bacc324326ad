from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from common.exceptions import NotFoundError
from orders.models import Order
from orders.services import mark_paid
from service_requests.models import Category, ServiceRequest

User = get_user_model()


class MarkPaidTests(TestCase):
    def setUp(self):
        self.cust = User.objects.create_user("cust", "cust@example.com", "pass1234")
        self.des = User.objects.create_user("des", "des@example.com", "pass1234")
        service = ServiceRequest.objects.create(
            client=self.cust,
            category=Category.objects.create(name="Logo"),
            title="Logo",
            description="desc",
            budget="100.00",
            deadline=timezone.now() + timedelta(days=5),
            status=ServiceRequest.Status.ASSIGNED,
            assigned_to=self.des,
        )
        self.order = Order.objects.create(
            service=service, client=self.cust, designer=self.des, price="100.00", max_revisions=3
        )

    def test_flips_once(self):
        self.assertTrue(mark_paid(self.order.id))
        self.order.refresh_from_db()
        self.assertTrue(self.order.is_paid)
        self.assertEqual(self.order.status, "in_progress")

        self.assertFalse(mark_paid(self.order.id))
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "in_progress")

    def test_keeps_status_of_order_that_moved_on(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.Status.CANCELLED)
        self.assertTrue(mark_paid(self.order.id))
        self.order.refresh_from_db()
        self.assertTrue(self.order.is_paid)
        self.assertEqual(self.order.status, "cancelled")

    def test_unknown_order(self):
        with self.assertRaises(NotFoundError):
            mark_paid(999999)
