from django.urls import path

from audit.views import AuditLogListAPIView

urlpatterns = [
    path("audit-logs/", AuditLogListAPIView.as_view(), name="audit-logs-list"),
]
