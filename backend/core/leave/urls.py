from django.urls import path

from leave.views import LeaveRequestDetailAPIView, LeaveRequestListCreateAPIView, LeaveStatsAPIView

urlpatterns = [
    path("leave/", LeaveRequestListCreateAPIView.as_view(), name="leave-list"),
    path("leave/stats/", LeaveStatsAPIView.as_view(), name="leave-stats"),
    path("leave/<int:pk>/", LeaveRequestDetailAPIView.as_view(), name="leave-detail"),
]
