from django.urls import path

from hostel.views import (
    HostelDetailAPIView,
    HostelListCreateAPIView,
    MaintenanceRequestDetailAPIView,
    MaintenanceRequestListCreateAPIView,
)

urlpatterns = [
    path("hostel/hostels/", HostelListCreateAPIView.as_view(), name="hostel-hostels-list"),
    path("hostel/hostels/<int:pk>/", HostelDetailAPIView.as_view(), name="hostel-hostels-detail"),
    path(
        "hostel/maintenance/",
        MaintenanceRequestListCreateAPIView.as_view(),
        name="hostel-maintenance-list",
    ),
    path(
        "hostel/maintenance/<int:pk>/",
        MaintenanceRequestDetailAPIView.as_view(),
        name="hostel-maintenance-detail",
    ),
]
