from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from accounts.models import Permission, Tenant, User


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "code")


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("username", "email", "tenant", "status", "is_active", "is_superuser")
    list_filter = ("tenant", "status", "is_active", "is_superuser")
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("School", {"fields": ("tenant", "phone", "address", "status")}),
    )


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ("name", "resource", "action", "description")
    list_filter = ("resource", "action")
    search_fields = ("name",)
