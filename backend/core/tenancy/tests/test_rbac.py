from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from tenancy.rbac import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_TEACHER,
    Action,
    PermissionCode,
    Resource,
    build_permission_matrix,
    get_resource_permission_matrix,
    is_granted,
    validate_permission_names,
)


class PermissionVocabularyTests(SimpleTestCase):
    def test_every_code_is_resource_colon_action(self):
        for code in PermissionCode:
            resource, action = code.value.split(":")
            self.assertEqual(code.resource, Resource(resource))
            self.assertEqual(code.action, Action(action))

    def test_default_roles_only_use_known_codes(self):
        for codes in DEFAULT_ROLE_PERMISSIONS.values():
            for code in codes:
                self.assertIsInstance(code, PermissionCode)

    def test_validate_rejects_unknown_names(self):
        with self.assertRaises(ValidationError):
            validate_permission_names(["students:read", "students:teleport"])

    def test_validate_deduplicates_and_sorts(self):
        codes = validate_permission_names(["students:update", "students:read", "students:read"])
        self.assertEqual(codes, [PermissionCode.STUDENTS_READ, PermissionCode.STUDENTS_UPDATE])


class PermissionMatrixTests(SimpleTestCase):
    def test_unset_methods_are_absent(self):
        matrix = build_permission_matrix(read=PermissionCode.LEAVE_READ)

        self.assertEqual(matrix["GET"], (PermissionCode.LEAVE_READ,))
        self.assertEqual(matrix["HEAD"], (PermissionCode.LEAVE_READ,))
        self.assertNotIn("POST", matrix)
        self.assertNotIn("DELETE", matrix)

    def test_empty_tuple_means_authenticated_only(self):
        matrix = build_permission_matrix(read=())
        self.assertEqual(matrix["GET"], ())

    def test_resource_matrix_uses_conventional_actions(self):
        matrix = get_resource_permission_matrix(Resource.STUDENTS)

        self.assertEqual(matrix["GET"], (PermissionCode.STUDENTS_READ,))
        self.assertEqual(matrix["POST"], (PermissionCode.STUDENTS_CREATE,))
        self.assertEqual(matrix["PATCH"], (PermissionCode.STUDENTS_UPDATE,))
        self.assertEqual(matrix["DELETE"], (PermissionCode.STUDENTS_DELETE,))

    def test_any_of_semantics(self):
        required = (PermissionCode.LEAVE_UPDATE, PermissionCode.LEAVE_APPROVE)

        self.assertTrue(is_granted({"leave:approve"}, required))
        self.assertFalse(is_granted({"leave:read"}, required))
        self.assertFalse(is_granted(set(), required))

    def test_names_match_exactly(self):
        self.assertFalse(is_granted({"students:*"}, (PermissionCode.STUDENTS_READ,)))
        self.assertFalse(is_granted({"STUDENTS:READ"}, (PermissionCode.STUDENTS_READ,)))

    def test_teacher_defaults_include_student_read(self):
        self.assertIn(PermissionCode.STUDENTS_READ, DEFAULT_ROLE_PERMISSIONS[ROLE_TEACHER])
