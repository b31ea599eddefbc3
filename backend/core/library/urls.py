from django.urls import path

from library.views import (
    BookCirculationDetailAPIView,
    BookCirculationListCreateAPIView,
    BookDetailAPIView,
    BookListCreateAPIView,
    BookReservationDetailAPIView,
    BookReservationListCreateAPIView,
    CancelReservationAPIView,
    FulfillReservationAPIView,
    LibraryStatsAPIView,
    RenewBookAPIView,
    ReturnBookAPIView,
)

urlpatterns = [
    path("library/books/", BookListCreateAPIView.as_view(), name="library-books-list"),
    path("library/books/<int:pk>/", BookDetailAPIView.as_view(), name="library-books-detail"),
    path(
        "library/circulations/",
        BookCirculationListCreateAPIView.as_view(),
        name="library-circulations-list",
    ),
    path(
        "library/circulations/<int:pk>/",
        BookCirculationDetailAPIView.as_view(),
        name="library-circulations-detail",
    ),
    path(
        "library/circulations/<int:pk>/return/",
        ReturnBookAPIView.as_view(),
        name="library-circulations-return",
    ),
    path(
        "library/circulations/<int:pk>/renew/",
        RenewBookAPIView.as_view(),
        name="library-circulations-renew",
    ),
    path(
        "library/reservations/",
        BookReservationListCreateAPIView.as_view(),
        name="library-reservations-list",
    ),
    path(
        "library/reservations/<int:pk>/",
        BookReservationDetailAPIView.as_view(),
        name="library-reservations-detail",
    ),
    path(
        "library/reservations/<int:pk>/fulfill/",
        FulfillReservationAPIView.as_view(),
        name="library-reservations-fulfill",
    ),
    path(
        "library/reservations/<int:pk>/cancel/",
        CancelReservationAPIView.as_view(),
        name="library-reservations-cancel",
    ),
    path("library/stats/", LibraryStatsAPIView.as_view(), name="library-stats"),
]
