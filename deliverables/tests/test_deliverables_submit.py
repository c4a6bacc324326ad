import os
import shutil
import tempfile
from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from deliverables import services
from deliverables.models import Deliverable
from orders.models import Order
from profiles.models import Profile
from service_requests.models import Category, ServiceRequest

User = get_user_model()


def create_user_with_type(username, t: str):
    user = User.objects.create_user(username, f"{username}@example.com", "pass1234")
    Profile.objects.create(user=user, type=t)
    return user, Token.objects.create(user=user)


def create_paid_order(client, designer, max_revisions=3):
    service = ServiceRequest.objects.create(
        client=client,
        category=Category.objects.create(name="Logo"),
        title="Logo",
        description="desc",
        budget="100.00",
        deadline=timezone.now() + timedelta(days=5),
        status=ServiceRequest.Status.ASSIGNED,
        assigned_to=designer,
    )
    return Order.objects.create(
        service=service,
        client=client,
        designer=designer,
        price=service.budget,
        max_revisions=max_revisions,
        is_paid=True,
        status=Order.Status.IN_PROGRESS,
    )


def upload(name="logo.png", content=b"\x89PNG fake image"):
    return SimpleUploadedFile(name, content, content_type="image/png")


class DeliverableSubmitTests(APITestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        media = override_settings(MEDIA_ROOT=self.media_root)
        media.enable()
        self.addCleanup(media.disable)
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

        self.cust, self.cust_token = create_user_with_type("cust", "client")
        self.des, self.des_token = create_user_with_type("des", "designer")
        self.other, self.other_token = create_user_with_type("other", "designer")
        self.order = create_paid_order(self.cust, self.des)
        self.url = reverse("deliverable-submit")

    def auth(self, token):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")

    def submit(self, **extra):
        data = {"order": self.order.id, "title": "First draft", "file": upload()}
        data.update(extra)
        return self.client.post(self.url, data, format="multipart")

    def test_designer_submits_pending_deliverable(self):
        self.auth(self.des_token)
        with self.captureOnCommitCallbacks(execute=True):
            res = self.submit()
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["status"], "PENDING")
        self.assertEqual(res.data["designer"], self.des.id)

        deliverable = Deliverable.objects.get(pk=res.data["id"])
        self.assertTrue(default_storage.exists(deliverable.file_handle))
        self.assertTrue(deliverable.file_handle.startswith(f"deliverables/{self.order.id}/"))

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "revision")
        self.assertEqual(self.order.revision_count, 0)
        self.assertEqual([m.to for m in mail.outbox], [["cust@example.com"]])

    def test_file_is_required_400(self):
        self.auth(self.des_token)
        res = self.client.post(self.url, {"order": self.order.id, "title": "No file"}, format="multipart")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_designer_403(self):
        self.auth(self.other_token)
        res = self.submit()
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Deliverable.objects.exists())

    def test_client_cannot_submit_403(self):
        self.auth(self.cust_token)
        res = self.submit()
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_unpaid_order_409(self):
        Order.objects.filter(pk=self.order.pk).update(is_paid=False, status=Order.Status.AWAITING_PAYMENT)
        self.auth(self.des_token)
        res = self.submit()
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_order_404(self):
        self.auth(self.des_token)
        res = self.submit(order=999999)
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_failed_insert_removes_new_upload(self):
        with mock.patch.object(Deliverable.objects, "create", side_effect=DatabaseError("insert failed")):
            with self.assertRaises(DatabaseError):
                services.submit_deliverable(self.order.id, self.des, upload(), title="Draft")
        self.assertFalse(Deliverable.objects.exists())
        order_dir = os.path.join(self.media_root, "deliverables", str(self.order.id))
        self.assertEqual(os.listdir(order_dir) if os.path.isdir(order_dir) else [], [])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "in_progress")

    @override_settings(MARKETPLACE={"MAX_REVISIONS": 3, "FRONTEND_URL": "", "DELIVERABLE_MAX_UPLOAD_SIZE": 4})
    def test_file_too_large_400(self):
        self.auth(self.des_token)
        res = self.submit()
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)


class DeliverableChangeTests(APITestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        media = override_settings(MEDIA_ROOT=self.media_root)
        media.enable()
        self.addCleanup(media.disable)
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

        self.cust, self.cust_token = create_user_with_type("cust", "client")
        self.des, self.des_token = create_user_with_type("des", "designer")
        self.outsider, self.outsider_token = create_user_with_type("outsider", "client")
        self.order = create_paid_order(self.cust, self.des)
        self.auth(self.des_token)
        res = self.client.post(
            reverse("deliverable-submit"),
            {"order": self.order.id, "title": "Draft", "file": upload()},
            format="multipart",
        )
        self.deliverable = Deliverable.objects.get(pk=res.data["id"])
        self.url = reverse("deliverable-detail", args=[self.deliverable.id])

    def auth(self, token):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")

    def test_resubmit_replaces_file_after_commit(self):
        old_handle = self.deliverable.file_handle
        with self.captureOnCommitCallbacks(execute=True):
            res = self.client.patch(
                self.url, {"title": "Draft 2", "file": upload("logo-v2.png")}, format="multipart"
            )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["title"], "Draft 2")
        self.deliverable.refresh_from_db()
        self.assertNotEqual(self.deliverable.file_handle, old_handle)
        self.assertTrue(default_storage.exists(self.deliverable.file_handle))
        self.assertFalse(default_storage.exists(old_handle))

    def test_failed_update_keeps_old_file(self):
        old_handle = self.deliverable.file_handle
        with mock.patch.object(Deliverable, "save", side_effect=DatabaseError("update failed")):
            with self.assertRaises(DatabaseError):
                services.resubmit_deliverable(
                    self.deliverable.id, self.des, upload=upload("logo-v2.png"), title="Draft 2"
                )
        self.deliverable.refresh_from_db()
        self.assertEqual(self.deliverable.file_handle, old_handle)
        self.assertEqual(self.deliverable.title, "Draft")
        self.assertTrue(default_storage.exists(old_handle))
        order_dir = os.path.join(self.media_root, "deliverables", str(self.order.id))
        self.assertEqual(os.listdir(order_dir), [os.path.basename(old_handle)])

    def test_resubmit_without_file_keeps_it(self):
        old_handle = self.deliverable.file_handle
        res = self.client.patch(self.url, {"description": "Notes"}, format="multipart")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.deliverable.refresh_from_db()
        self.assertEqual(self.deliverable.file_handle, old_handle)
        self.assertEqual(self.deliverable.description, "Notes")

    def test_client_cannot_resubmit_403(self):
        self.auth(self.cust_token)
        res = self.client.patch(self.url, {"title": "hax"}, format="multipart")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_pending_removes_file(self):
        handle = self.deliverable.file_handle
        with self.captureOnCommitCallbacks(execute=True):
            res = self.client.delete(self.url)
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Deliverable.objects.filter(pk=self.deliverable.pk).exists())
        self.assertFalse(default_storage.exists(handle))

    def test_delete_reviewed_409(self):
        Deliverable.objects.filter(pk=self.deliverable.pk).update(status=Deliverable.Status.REJECTED)
        res = self.client.delete(self.url)
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_reads_for_participants(self):
        for token in (self.des_token, self.cust_token):
            self.auth(token)
            res = self.client.get(self.url)
            self.assertEqual(res.status_code, status.HTTP_200_OK)
            res = self.client.get(reverse("order-deliverables", args=[self.order.id]))
            self.assertEqual([row["id"] for row in res.data], [self.deliverable.id])
            res = self.client.get(reverse("deliverable-file", args=[self.deliverable.id]))
            self.assertEqual(res.data["file_url"], self.deliverable.file_url)

    def test_role_lists(self):
        res = self.client.get(reverse("deliverable-designer-list"))
        self.assertEqual([row["id"] for row in res.data], [self.deliverable.id])
        self.auth(self.cust_token)
        res = self.client.get(reverse("deliverable-client-list"))
        self.assertEqual([row["id"] for row in res.data], [self.deliverable.id])
        res = self.client.get(reverse("deliverable-designer-list"))
        self.assertEqual(res.data, [])

    def test_outsider_cannot_read_403(self):
        self.auth(self.outsider_token)
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        res = self.client.get(reverse("deliverable-download", args=[self.deliverable.id]))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_download_streams_file(self):
        self.auth(self.cust_token)
        res = self.client.get(reverse("deliverable-download", args=[self.deliverable.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(b"".join(res.streaming_content), b"\x89PNG fake image")
        self.assertIn("attachment", res["Content-Disposition"])
        res.close()

    def test_download_missing_file_404(self):
        default_storage.delete(self.deliverable.file_handle)
        res = self.client.get(reverse("deliverable-download", args=[self.deliverable.id]))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
