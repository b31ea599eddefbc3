from django.urls import path

from communication.views import (
    AnnouncementArchiveAPIView,
    AnnouncementDetailAPIView,
    AnnouncementListCreateAPIView,
    AnnouncementPublishAPIView,
    BulkMessageAPIView,
    CommunicationLogListAPIView,
    CommunicationStatsAPIView,
    MessageDetailAPIView,
    MessageListCreateAPIView,
    MessageReadAPIView,
    MessageReplyAPIView,
    MessageTemplateDetailAPIView,
    MessageTemplateListCreateAPIView,
    MessageThreadAPIView,
    UnreadCountAPIView,
)

urlpatterns = [
    path("messages/", MessageListCreateAPIView.as_view(), name="messages-list"),
    path("messages/bulk/", BulkMessageAPIView.as_view(), name="messages-bulk"),
    path("messages/unread/count/", UnreadCountAPIView.as_view(), name="messages-unread-count"),
    path(
        "messages/thread/<int:thread_id>/",
        MessageThreadAPIView.as_view(),
        name="messages-thread",
    ),
    path("messages/<int:pk>/", MessageDetailAPIView.as_view(), name="messages-detail"),
    path("messages/<int:pk>/read/", MessageReadAPIView.as_view(), name="messages-read"),
    path("messages/<int:pk>/reply/", MessageReplyAPIView.as_view(), name="messages-reply"),
    path(
        "message-templates/",
        MessageTemplateListCreateAPIView.as_view(),
        name="message-templates-list",
    ),
    path(
        "message-templates/<int:pk>/",
        MessageTemplateDetailAPIView.as_view(),
        name="message-templates-detail",
    ),
    path("announcements/", AnnouncementListCreateAPIView.as_view(), name="announcements-list"),
    path(
        "announcements/<int:pk>/",
        AnnouncementDetailAPIView.as_view(),
        name="announcements-detail",
    ),
    path(
        "announcements/<int:pk>/publish/",
        AnnouncementPublishAPIView.as_view(),
        name="announcements-publish",
    ),
    path(
        "announcements/<int:pk>/archive/",
        AnnouncementArchiveAPIView.as_view(),
        name="announcements-archive",
    ),
    path("communication/logs/", CommunicationLogListAPIView.as_view(), name="communication-logs"),
    path("communication/stats/", CommunicationStatsAPIView.as_view(), name="communication-stats"),
]
