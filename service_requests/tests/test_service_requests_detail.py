from datetime import timedelta

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from profiles.models import Profile
from service_requests.models import Category, ServiceRequest

User = get_user_model()


def create_user_with_type(username, t: str):
    user = User.objects.create_user(username, f"{username}@example.com", "pass1234")
    Profile.objects.create(user=user, type=t)
    return user, Token.objects.create(user=user)


def create_service(client, category, **extra):
    data = {
        "title": "Poster",
        "description": "Concert poster",
        "budget": "250.00",
        "deadline": timezone.now() + timedelta(days=10),
    }
    data.update(extra)
    return ServiceRequest.objects.create(client=client, category=category, **data)


class ServiceRequestDetailTests(APITestCase):
    def setUp(self):
        self.owner, self.owner_token = create_user_with_type("owner", "client")
        self.stranger, self.stranger_token = create_user_with_type("stranger", "client")
        self.designer, self.designer_token = create_user_with_type("designer", "designer")
        self.category = Category.objects.create(name="Print")
        self.service = create_service(self.owner, self.category)
        self.url = reverse("service-detail", args=[self.service.id])

    def auth(self, token):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")

    def test_owner_and_designer_can_view(self):
        for token in (self.owner_token, self.designer_token):
            self.auth(token)
            res = self.client.get(self.url)
            self.assertEqual(res.status_code, status.HTTP_200_OK)
            self.assertEqual(res.data["id"], self.service.id)

    def test_other_client_cannot_view_403(self):
        self.auth(self.stranger_token)
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_not_found_404(self):
        self.auth(self.owner_token)
        res = self.client.get(reverse("service-detail", args=[999999]))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_patches_title_and_budget(self):
        self.auth(self.owner_token)
        res = self.client.patch(self.url, {"title": "Tour poster", "budget": "300.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.service.refresh_from_db()
        self.assertEqual(self.service.title, "Tour poster")
        self.assertEqual(str(self.service.budget), "300.00")

    def test_patch_by_non_owner_403(self):
        self.auth(self.stranger_token)
        res = self.client.patch(self.url, {"title": "hax"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_patch_status_field_rejected_400(self):
        self.auth(self.owner_token)
        res = self.client.patch(self.url, {"status": "completed"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, "open")

    def test_budget_frozen_once_assigned_409(self):
        self.service.status = ServiceRequest.Status.ASSIGNED
        self.service.assigned_to = self.designer
        self.service.save()
        self.auth(self.owner_token)
        res = self.client.patch(self.url, {"budget": "1.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        res = self.client.patch(self.url, {"description": "Updated brief"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)

    def test_owner_deletes_open_request_204(self):
        self.auth(self.owner_token)
        res = self.client.delete(self.url)
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ServiceRequest.objects.filter(pk=self.service.id).exists())

    def test_delete_assigned_request_409(self):
        self.service.status = ServiceRequest.Status.ASSIGNED
        self.service.assigned_to = self.designer
        self.service.save()
        self.auth(self.owner_token)
        res = self.client.delete(self.url)
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_designer_browse_filters_by_category(self):
        other_category = Category.objects.create(name="Web")
        create_service(self.owner, other_category, title="Landing page")
        create_service(self.owner, self.category, title="Closed", status=ServiceRequest.Status.COMPLETED)
        self.auth(self.designer_token)
        res = self.client.get(reverse("designer-service-list"), {"category": other_category.id})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([row["title"] for row in res.data], ["Landing page"])

        res = self.client.get(reverse("designer-service-list"))
        self.assertEqual(sorted(row["title"] for row in res.data), ["Landing page", "Poster"])

    def test_designer_browse_bad_category_400(self):
        self.auth(self.designer_token)
        res = self.client.get(reverse("designer-service-list"), {"category": "abc"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_cannot_browse_403(self):
        self.auth(self.owner_token)
        res = self.client.get(reverse("designer-service-list"))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
