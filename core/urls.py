from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("service_requests.api.urls")),
    path("api/", include("orders.api.urls")),
    path("api/", include("deliverables.api.urls")),
    path("api/", include("payments.api.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
