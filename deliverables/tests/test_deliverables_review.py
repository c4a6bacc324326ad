import shutil
import tempfile
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from deliverables.models import Deliverable
from orders.models import Order
from profiles.models import Profile
from service_requests.models import Category, ServiceRequest

User = get_user_model()


def create_user_with_type(username, t: str):
    user = User.objects.create_user(username, f"{username}@example.com", "pass1234")
    Profile.objects.create(user=user, type=t)
    return user, Token.objects.create(user=user)


class DeliverableReviewTests(APITestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        media = override_settings(MEDIA_ROOT=self.media_root)
        media.enable()
        self.addCleanup(media.disable)
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

        self.cust, self.cust_token = create_user_with_type("cust", "client")
        self.des, self.des_token = create_user_with_type("des", "designer")
        self.service = ServiceRequest.objects.create(
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
            service=self.service,
            client=self.cust,
            designer=self.des,
            price=self.service.budget,
            max_revisions=3,
            is_paid=True,
            status=Order.Status.IN_PROGRESS,
        )
        self.deliverable = self.submit()

    def auth(self, token):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")

    def submit(self):
        self.auth(self.des_token)
        res = self.client.post(
            reverse("deliverable-submit"),
            {
                "order": self.order.id,
                "title": "Draft",
                "file": SimpleUploadedFile("draft.pdf", b"%PDF-1.4", content_type="application/pdf"),
            },
            format="multipart",
        )
        return Deliverable.objects.get(pk=res.data["id"])

    def review(self, decision, feedback=""):
        self.auth(self.cust_token)
        return self.client.post(
            reverse("deliverable-review", args=[self.deliverable.id]),
            {"status": decision, "feedback": feedback},
            format="json",
        )

    def resubmit(self):
        self.auth(self.des_token)
        return self.client.patch(
            reverse("deliverable-detail", args=[self.deliverable.id]),
            {"file": SimpleUploadedFile("draft-2.pdf", b"%PDF-1.5", content_type="application/pdf")},
            format="multipart",
        )

    def test_approve_completes_order_and_service(self):
        with self.captureOnCommitCallbacks(execute=True):
            res = self.review("APPROVED")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "APPROVED")
        self.assertIsNotNone(res.data["reviewed_at"])
        self.order.refresh_from_db()
        self.service.refresh_from_db()
        self.assertEqual(self.order.status, "completed")
        self.assertEqual(self.service.status, "completed")
        subjects = sorted(m.subject for m in mail.outbox)
        self.assertEqual(
            subjects,
            [
                f"Confirmation: You've Approved Deliverable #{self.deliverable.id}",
                f"Great News! Deliverable #{self.deliverable.id} Approved",
            ],
        )

    def test_reject_counts_revision(self):
        with self.captureOnCommitCallbacks(execute=True):
            res = self.review("REJECTED", feedback="Use the brand colours")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["feedback"], "Use the brand colours")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "revision")
        self.assertEqual(self.order.revision_count, 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["des@example.com"])
        self.assertTrue(mail.outbox[0].subject.startswith("Action Required"))

    def test_three_rejections_force_complete(self):
        for expected in (1, 2):
            self.review("REJECTED")
            self.order.refresh_from_db()
            self.assertEqual(self.order.revision_count, expected)
            self.assertEqual(self.order.status, "revision")
        self.review("REJECTED")
        self.order.refresh_from_db()
        self.assertEqual(self.order.revision_count, 3)
        self.assertEqual(self.order.status, "completed")

    def test_reject_resubmit_approve_round_trip(self):
        self.review("REJECTED")
        res = self.resubmit()
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "PENDING")
        res = self.review("APPROVED")
        self.assertEqual(res.data["status"], "APPROVED")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "completed")
        self.assertEqual(self.order.revision_count, 1)

    def test_approved_deliverable_is_immutable(self):
        self.review("APPROVED")
        res = self.review("REJECTED")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        res = self.resubmit()
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        res = self.client.delete(reverse("deliverable-detail", args=[self.deliverable.id]))
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.deliverable.refresh_from_db()
        self.assertEqual(self.deliverable.status, "APPROVED")

    def test_invalid_decision_400(self):
        res = self.review("PENDING")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_designer_cannot_review_403(self):
        self.auth(self.des_token)
        res = self.client.post(
            reverse("deliverable-review", args=[self.deliverable.id]),
            {"status": "APPROVED"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_cancelled_order_409(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.Status.CANCELLED)
        res = self.review("APPROVED")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_deliverable_404(self):
        self.auth(self.cust_token)
        res = self.client.post(reverse("deliverable-review", args=[999999]), {"status": "APPROVED"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
