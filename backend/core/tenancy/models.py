from django.core.exceptions import ValidationError
from django.db import models

from tenancy.context import get_current_tenant


class TenantManager(models.Manager):
    """Default manager: rows of the bound tenant only, nothing when none is bound."""

    def get_queryset(self):
        tenant = get_current_tenant()
        if tenant is None:
            return super().get_queryset().none()
        return super().get_queryset().filter(tenant=tenant)


class BaseTenantModel(models.Model):
    tenant = models.ForeignKey(
        "accounts.Tenant",
        on_delete=models.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_tenant_id = instance.__dict__.get("tenant_id")
        return instance

    def check_tenant_scope(self):
        """Fill the tenant from the bound one and refuse writes that cross tenants.

        A stored row never changes tenant, whoever saves it.
        """

        bound = get_current_tenant()
        if self.tenant_id is None and bound is not None:
            self.tenant = bound
        if self.tenant_id is None:
            raise ValidationError({"tenant": "Tenant is required."})

        loaded_tenant_id = getattr(self, "_loaded_tenant_id", None)
        if loaded_tenant_id is not None and self.tenant_id != loaded_tenant_id:
            raise ValidationError({"tenant": "A stored row cannot move to another tenant."})
        if bound is not None and self.tenant_id != bound.id:
            raise ValidationError(
                {"tenant": "Row belongs to another tenant than the authenticated one."}
            )

    def save(self, *args, **kwargs):
        self.check_tenant_scope()
        super().save(*args, **kwargs)
        self._loaded_tenant_id = self.tenant_id
