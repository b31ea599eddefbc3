from typing import Iterable

from django.core.exceptions import ValidationError
from django.db import models

VALID_METHODS = frozenset(("GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"))


class Resource(models.TextChoices):
    USERS = "users", "Users"
    ROLES = "roles", "Roles"
    STUDENTS = "students", "Students"
    TEACHERS = "teachers", "Teachers"
    CLASSES = "classes", "Classes"
    SUBJECTS = "subjects", "Subjects"
    ACADEMIC_YEARS = "academic_years", "Academic years"
    EXAMINATIONS = "examinations", "Examinations"
    GRADES = "grades", "Grades"
    SCHEDULES = "schedules", "Schedules"
    ATTENDANCE = "attendance", "Attendance"
    FEES = "fees", "Fees"
    INVOICES = "invoices", "Invoices"
    PAYMENTS = "payments", "Payments"
    EXPENSES = "expenses", "Expenses"
    BUDGETS = "budgets", "Budgets"
    FINANCE = "finance", "Finance dashboard"
    MESSAGES = "messages", "Messages"
    MESSAGE_TEMPLATES = "message_templates", "Message templates"
    ANNOUNCEMENTS = "announcements", "Announcements"
    COMMUNICATION = "communication", "Communication logs"
    LEAVE = "leave", "Leave requests"
    LIBRARY = "library", "Library"
    HOSTEL = "hostel", "Hostel"
    AUDIT_LOGS = "audit_logs", "Audit logs"


class Action(models.TextChoices):
    CREATE = "create", "Create"
    READ = "read", "Read"
    UPDATE = "update", "Update"
    DELETE = "delete", "Delete"
    APPROVE = "approve", "Approve"
    PUBLISH = "publish", "Publish"
    MANAGE = "manage", "Manage"


class PermissionCode(models.TextChoices):
    """Closed vocabulary of `resource:action` grants.

    Routes reference members of this enum only, so a misspelled grant fails at
    import time instead of silently denying every request.
    """

    USERS_CREATE = "users:create", "Create users"
    USERS_READ = "users:read", "View users"
    USERS_UPDATE = "users:update", "Update users"
    USERS_DELETE = "users:delete", "Delete users"

    ROLES_CREATE = "roles:create", "Create roles"
    ROLES_READ = "roles:read", "View roles"
    ROLES_UPDATE = "roles:update", "Update roles and their grants"
    ROLES_DELETE = "roles:delete", "Delete roles"

    STUDENTS_CREATE = "students:create", "Enroll students"
    STUDENTS_READ = "students:read", "View students"
    STUDENTS_UPDATE = "students:update", "Update students"
    STUDENTS_DELETE = "students:delete", "Delete students"

    TEACHERS_CREATE = "teachers:create", "Register teachers"
    TEACHERS_READ = "teachers:read", "View teachers"
    TEACHERS_UPDATE = "teachers:update", "Update teachers and their subjects"
    TEACHERS_DELETE = "teachers:delete", "Delete teachers"

    CLASSES_CREATE = "classes:create", "Create classes"
    CLASSES_READ = "classes:read", "View classes"
    CLASSES_UPDATE = "classes:update", "Update classes"
    CLASSES_DELETE = "classes:delete", "Delete classes"

    SUBJECTS_CREATE = "subjects:create", "Create subjects"
    SUBJECTS_READ = "subjects:read", "View subjects"
    SUBJECTS_UPDATE = "subjects:update", "Update subjects"
    SUBJECTS_DELETE = "subjects:delete", "Delete subjects"

    ACADEMIC_YEARS_CREATE = "academic_years:create", "Create academic years"
    ACADEMIC_YEARS_READ = "academic_years:read", "View academic years"
    ACADEMIC_YEARS_UPDATE = "academic_years:update", "Update academic years"
    ACADEMIC_YEARS_DELETE = "academic_years:delete", "Delete academic years"

    EXAMINATIONS_CREATE = "examinations:create", "Schedule examinations"
    EXAMINATIONS_READ = "examinations:read", "View examinations"
    EXAMINATIONS_UPDATE = "examinations:update", "Update examinations"
    EXAMINATIONS_DELETE = "examinations:delete", "Delete examinations"

    GRADES_CREATE = "grades:create", "Record grades"
    GRADES_READ = "grades:read", "View grades"
    GRADES_UPDATE = "grades:update", "Update grades"
    GRADES_DELETE = "grades:delete", "Delete grades"

    SCHEDULES_CREATE = "schedules:create", "Create schedule entries"
    SCHEDULES_READ = "schedules:read", "View the timetable"
    SCHEDULES_UPDATE = "schedules:update", "Update schedule entries"
    SCHEDULES_DELETE = "schedules:delete", "Delete schedule entries"

    ATTENDANCE_CREATE = "attendance:create", "Mark attendance"
    ATTENDANCE_READ = "attendance:read", "View attendance"
    ATTENDANCE_UPDATE = "attendance:update", "Correct attendance records"
    ATTENDANCE_DELETE = "attendance:delete", "Delete attendance records"

    FEES_CREATE = "fees:create", "Create fees and fee assignments"
    FEES_READ = "fees:read", "View fees and fee assignments"
    FEES_UPDATE = "fees:update", "Update fees and fee assignments"
    FEES_DELETE = "fees:delete", "Delete fees and fee assignments"

    INVOICES_CREATE = "invoices:create", "Issue invoices"
    INVOICES_READ = "invoices:read", "View invoices"
    INVOICES_UPDATE = "invoices:update", "Update invoices"
    INVOICES_DELETE = "invoices:delete", "Delete invoices"

    PAYMENTS_CREATE = "payments:create", "Record payments"
    PAYMENTS_READ = "payments:read", "View payments"

    EXPENSES_CREATE = "expenses:create", "Submit expenses"
    EXPENSES_READ = "expenses:read", "View expenses"
    EXPENSES_UPDATE = "expenses:update", "Update expenses"
    EXPENSES_DELETE = "expenses:delete", "Delete expenses"
    EXPENSES_APPROVE = "expenses:approve", "Approve or reject expenses"

    BUDGETS_CREATE = "budgets:create", "Create budgets"
    BUDGETS_READ = "budgets:read", "View budgets"
    BUDGETS_UPDATE = "budgets:update", "Update budgets"
    BUDGETS_DELETE = "budgets:delete", "Delete budgets"

    FINANCE_READ = "finance:read", "View the finance dashboard"

    MESSAGES_CREATE = "messages:create", "Send messages"
    MESSAGES_READ = "messages:read", "Read messages"
    MESSAGES_DELETE = "messages:delete", "Delete messages"

    MESSAGE_TEMPLATES_CREATE = "message_templates:create", "Create message templates"
    MESSAGE_TEMPLATES_READ = "message_templates:read", "View message templates"
    MESSAGE_TEMPLATES_UPDATE = "message_templates:update", "Update message templates"
    MESSAGE_TEMPLATES_DELETE = "message_templates:delete", "Delete message templates"

    ANNOUNCEMENTS_CREATE = "announcements:create", "Create announcements"
    ANNOUNCEMENTS_READ = "announcements:read", "View announcements"
    ANNOUNCEMENTS_UPDATE = "announcements:update", "Update announcements"
    ANNOUNCEMENTS_DELETE = "announcements:delete", "Delete announcements"
    ANNOUNCEMENTS_PUBLISH = "announcements:publish", "Publish or archive announcements"

    COMMUNICATION_READ = "communication:read", "View communication logs"

    LEAVE_CREATE = "leave:create", "Request leave"
    LEAVE_READ = "leave:read", "View leave requests"
    LEAVE_UPDATE = "leave:update", "Edit pending leave requests"
    LEAVE_DELETE = "leave:delete", "Delete leave requests"
    LEAVE_APPROVE = "leave:approve", "Approve or reject leave requests"

    LIBRARY_READ = "library:read", "Browse the library"
    LIBRARY_MANAGE = "library:manage", "Manage books, loans and reservations"

    HOSTEL_READ = "hostel:read", "View hostels and maintenance requests"
    HOSTEL_MANAGE = "hostel:manage", "Manage hostels and maintenance requests"

    AUDIT_LOGS_READ = "audit_logs:read", "View audit logs"

    @property
    def resource(self) -> Resource:
        return Resource(self.value.split(":", 1)[0])

    @property
    def action(self) -> Action:
        return Action(self.value.split(":", 1)[1])


ALL_PERMISSIONS = frozenset(PermissionCode)

ROLE_TENANT_ADMIN = "Tenant Admin"
ROLE_TEACHER = "Teacher"
ROLE_STUDENT = "Student"
ROLE_PARENT = "Parent"
ROLE_STAFF = "Staff"

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_TENANT_ADMIN: ALL_PERMISSIONS,
    ROLE_TEACHER: frozenset(
        (
            PermissionCode.STUDENTS_READ,
            PermissionCode.STUDENTS_UPDATE,
            PermissionCode.CLASSES_READ,
            PermissionCode.SUBJECTS_READ,
            PermissionCode.ACADEMIC_YEARS_READ,
            PermissionCode.TEACHERS_READ,
            PermissionCode.SCHEDULES_READ,
            PermissionCode.ATTENDANCE_CREATE,
            PermissionCode.ATTENDANCE_READ,
            PermissionCode.ATTENDANCE_UPDATE,
            PermissionCode.EXAMINATIONS_CREATE,
            PermissionCode.EXAMINATIONS_READ,
            PermissionCode.EXAMINATIONS_UPDATE,
            PermissionCode.GRADES_CREATE,
            PermissionCode.GRADES_READ,
            PermissionCode.GRADES_UPDATE,
            PermissionCode.MESSAGES_CREATE,
            PermissionCode.MESSAGES_READ,
            PermissionCode.MESSAGE_TEMPLATES_READ,
            PermissionCode.ANNOUNCEMENTS_READ,
            PermissionCode.LEAVE_CREATE,
            PermissionCode.LEAVE_READ,
            PermissionCode.LEAVE_APPROVE,
            PermissionCode.LIBRARY_READ,
        )
    ),
    ROLE_STUDENT: frozenset(
        (
            PermissionCode.CLASSES_READ,
            PermissionCode.SUBJECTS_READ,
            PermissionCode.ACADEMIC_YEARS_READ,
            PermissionCode.SCHEDULES_READ,
            PermissionCode.EXAMINATIONS_READ,
            PermissionCode.GRADES_READ,
            PermissionCode.MESSAGES_CREATE,
            PermissionCode.MESSAGES_READ,
            PermissionCode.ANNOUNCEMENTS_READ,
            PermissionCode.LIBRARY_READ,
        )
    ),
    ROLE_PARENT: frozenset(
        (
            PermissionCode.GRADES_READ,
            PermissionCode.ATTENDANCE_READ,
            PermissionCode.MESSAGES_CREATE,
            PermissionCode.MESSAGES_READ,
            PermissionCode.ANNOUNCEMENTS_READ,
            PermissionCode.LEAVE_CREATE,
            PermissionCode.LEAVE_READ,
        )
    ),
    ROLE_STAFF: frozenset(
        (
            PermissionCode.FINANCE_READ,
            PermissionCode.FEES_READ,
            PermissionCode.INVOICES_CREATE,
            PermissionCode.INVOICES_READ,
            PermissionCode.INVOICES_UPDATE,
            PermissionCode.PAYMENTS_CREATE,
            PermissionCode.PAYMENTS_READ,
            PermissionCode.EXPENSES_CREATE,
            PermissionCode.EXPENSES_READ,
            PermissionCode.EXPENSES_UPDATE,
            PermissionCode.BUDGETS_READ,
            PermissionCode.MESSAGES_CREATE,
            PermissionCode.MESSAGES_READ,
            PermissionCode.ANNOUNCEMENTS_READ,
            PermissionCode.LIBRARY_READ,
            PermissionCode.LIBRARY_MANAGE,
            PermissionCode.HOSTEL_READ,
            PermissionCode.HOSTEL_MANAGE,
        )
    ),
}


def _as_codes(codes) -> tuple[PermissionCode, ...] | None:
    if codes is None:
        return None
    if isinstance(codes, PermissionCode):
        return (codes,)
    return tuple(PermissionCode(code) for code in codes)


def build_permission_matrix(*, read=None, create=None, update=None, delete=None) -> dict:
    """Map HTTP methods to any-of permission tuples.

    Methods left as ``None`` are absent from the matrix and therefore denied;
    an empty tuple only requires an authenticated tenant member.
    """

    matrix = {}
    for methods, codes in (
        (("GET", "HEAD", "OPTIONS"), read),
        (("POST",), create),
        (("PUT", "PATCH"), update),
        (("DELETE",), delete),
    ):
        normalized = _as_codes(codes)
        if normalized is None:
            continue
        for method in methods:
            matrix[method] = normalized
    return matrix


def _code_for(resource: Resource, action: Action) -> PermissionCode | None:
    value = f"{resource.value}:{action.value}"
    if value not in PermissionCode.values:
        return None
    return PermissionCode(value)


def get_resource_permission_matrix(resource: Resource) -> dict:
    """Conventional read/create/update/delete matrix for a resource."""

    resource = Resource(resource)
    matrix_kwargs = {}
    for key, action in (
        ("read", Action.READ),
        ("create", Action.CREATE),
        ("update", Action.UPDATE),
        ("delete", Action.DELETE),
    ):
        code = _code_for(resource, action)
        if code is not None:
            matrix_kwargs[key] = (code,)
    return build_permission_matrix(**matrix_kwargs)


def is_granted(granted: Iterable[str], required: Iterable[PermissionCode]) -> bool:
    """Any-of check; names match by exact equality."""

    granted_names = frozenset(granted)
    return any(PermissionCode(code).value in granted_names for code in required)


def validate_permission_names(names) -> list[PermissionCode]:
    if not isinstance(names, (list, tuple, set, frozenset)):
        raise ValidationError("permissions must be a list of permission names.")

    unknown = sorted({str(name) for name in names if str(name) not in PermissionCode.values})
    if unknown:
        raise ValidationError(
            {"permissions": [f"Unknown permission '{name}'." for name in unknown]}
        )
    return sorted({PermissionCode(str(name)) for name in names}, key=lambda code: code.value)
