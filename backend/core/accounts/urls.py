from django.urls import path

from accounts.views import (
    LoginAPIView,
    PermissionListAPIView,
    ProfileAPIView,
    RoleDetailAPIView,
    RoleListCreateAPIView,
    RolePermissionsAPIView,
    TokenRefreshAPIView,
    UserDetailAPIView,
    UserListCreateAPIView,
    UserRoleRevokeAPIView,
    UserRolesAPIView,
)

urlpatterns = [
    path("auth/login/", LoginAPIView.as_view(), name="auth-login"),
    path("auth/profile/", ProfileAPIView.as_view(), name="auth-profile"),
    path("auth/refresh/", TokenRefreshAPIView.as_view(), name="auth-refresh"),
    path("permissions/", PermissionListAPIView.as_view(), name="permissions-list"),
    path("roles/", RoleListCreateAPIView.as_view(), name="roles-list"),
    path("roles/<int:pk>/", RoleDetailAPIView.as_view(), name="roles-detail"),
    path(
        "roles/<int:pk>/permissions/",
        RolePermissionsAPIView.as_view(),
        name="roles-permissions",
    ),
    path("users/", UserListCreateAPIView.as_view(), name="users-list"),
    path("users/<int:pk>/", UserDetailAPIView.as_view(), name="users-detail"),
    path("users/<int:pk>/roles/", UserRolesAPIView.as_view(), name="users-roles"),
    path(
        "users/<int:pk>/roles/<int:role_id>/",
        UserRoleRevokeAPIView.as_view(),
        name="users-roles-revoke",
    ),
]
