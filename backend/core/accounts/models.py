from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models

from tenancy.models import BaseTenantModel


class Tenant(models.Model):
    name = models.CharField(max_length=150)
    code = models.SlugField(
        max_length=63,
        unique=True,
        help_text="Identifier accepted in the X-Tenant-ID header and at login.",
    )
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=40, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().lower()
        return super().save(*args, **kwargs)


class User(AbstractUser):
    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"
    STATUS_SUSPENDED = "SUSPENDED"
    STATUS_PENDING = "PENDING"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
        (STATUS_SUSPENDED, "Suspended"),
        (STATUS_PENDING, "Pending"),
    ]

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.PROTECT,
        related_name="users",
        null=True,
        blank=True,
        help_text="Empty only for platform operators.",
    )
    phone = models.CharField(max_length=40, blank=True)
    address = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ("first_name", "last_name", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "email"),
                condition=~models.Q(email=""),
                name="uq_user_tenant_email",
            ),
        ]

    @property
    def full_name(self) -> str:
        return self.get_full_name() or self.username


class Permission(models.Model):
    name = models.CharField(max_length=80, unique=True)
    resource = models.CharField(max_length=40)
    action = models.CharField(max_length=20)
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("resource", "action")

    def __str__(self):
        return self.name


class Role(BaseTenantModel):
    name = models.CharField(max_length=80)
    description = models.CharField(max_length=255, blank=True)
    is_system = models.BooleanField(
        default=False,
        help_text="Created by bootstrap; cannot be deleted through the API.",
    )
    permissions = models.ManyToManyField(
        Permission,
        through="RolePermission",
        related_name="roles",
        blank=True,
    )

    class Meta:
        ordering = ("name",)
        constraints = [
            models.UniqueConstraint(fields=("tenant", "name"), name="uq_role_tenant_name"),
        ]

    def __str__(self):
        return self.name


class RolePermission(models.Model):
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="role_permissions")
    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name="role_permissions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=("role", "permission"),
                name="uq_role_permission",
            ),
        ]


class UserRole(BaseTenantModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_roles",
    )
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="user_roles")
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="assigned_user_roles",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("role__name",)
        constraints = [
            models.UniqueConstraint(fields=("user", "role"), name="uq_user_role"),
        ]

    def clean(self):
        super().clean()
        if self.role_id and self.role.tenant_id != self.tenant_id:
            raise ValidationError({"role": "Role belongs to a different tenant."})
        if self.user_id and self.user.tenant_id != self.tenant_id:
            raise ValidationError({"user": "User belongs to a different tenant."})

    def save(self, *args, **kwargs):
        self.check_tenant_scope()
        self.clean()
        return super().save(*args, **kwargs)
