from django.core.exceptions import ValidationError
from django.test import TestCase

from academics.models import SchoolClass
from tenancy.context import get_current_tenant, tenant_scope
from tenancy.tests.factories import make_tenant


class TenantScopeTests(TestCase):
    def setUp(self):
        self.alpha = make_tenant("alpha")
        self.beta = make_tenant("beta")
        self.alpha_class = SchoolClass.all_objects.create(tenant=self.alpha, name="Form One", code="F1")
        SchoolClass.all_objects.create(tenant=self.beta, name="Form One", code="F1")

    def test_default_manager_is_empty_without_a_tenant(self):
        self.assertIsNone(get_current_tenant())
        self.assertEqual(SchoolClass.objects.count(), 0)

    def test_default_manager_only_sees_the_bound_tenant(self):
        with tenant_scope(self.alpha):
            self.assertEqual(list(SchoolClass.objects.all()), [self.alpha_class])
        self.assertIsNone(get_current_tenant())

    def test_new_rows_take_the_bound_tenant(self):
        with tenant_scope(self.alpha):
            created = SchoolClass.objects.create(name="Form Two", code="F2")
        self.assertEqual(created.tenant, self.alpha)

    def test_writing_another_tenants_row_is_blocked(self):
        with tenant_scope(self.beta):
            with self.assertRaises(ValidationError):
                self.alpha_class.save()

    def test_stored_row_cannot_change_tenant(self):
        school_class = SchoolClass.all_objects.get(pk=self.alpha_class.pk)
        school_class.tenant = self.beta

        with self.assertRaises(ValidationError):
            school_class.save()
