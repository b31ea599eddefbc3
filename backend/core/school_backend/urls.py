from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def healthz(_request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz/", healthz, name="healthz"),
    path("api/", include("accounts.urls")),
    path("api/", include("academics.urls")),
    path("api/", include("audit.urls")),
    path("api/", include("communication.urls")),
    path("api/", include("leave.urls")),
    path("api/", include("library.urls")),
    path("api/", include("hostel.urls")),
    path("api/finance/", include("finance.urls")),
]
