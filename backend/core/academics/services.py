from __future__ import annotations

import logging
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from academics.grading import calculate_grade, calculate_percentage
from academics.models import Attendance, Grade, Schedule, Student, Teacher, TeacherSubject
from accounts.models import Role, User
from accounts.services import assign_role, build_username
from tenancy.exceptions import ConflictError
from tenancy.rbac import ROLE_TEACHER

logger = logging.getLogger(__name__)

USER_FIELDS = ("first_name", "last_name", "email", "phone")


def _check_email_free(tenant, email, *, exclude_user_id=None):
    if not email:
        return
    users = User.objects.filter(tenant=tenant, email__iexact=email)
    if exclude_user_id is not None:
        users = users.exclude(pk=exclude_user_id)
    if users.exists():
        raise ConflictError("A user with this email already exists.")


def _create_profile_user(tenant, user_data: dict) -> User:
    email = (user_data.get("email") or "").strip().lower()
    _check_email_free(tenant, email)
    user = User(
        tenant=tenant,
        username=build_username(tenant, email),
        email=email,
        first_name=user_data.get("first_name", ""),
        last_name=user_data.get("last_name", ""),
        phone=user_data.get("phone", ""),
    )
    user.set_unusable_password()
    user.save()
    return user


def _update_profile_user(user: User, user_data: dict) -> None:
    email = user_data.get("email")
    if email is not None:
        user_data["email"] = email.strip().lower()
        _check_email_free(user.tenant, user_data["email"], exclude_user_id=user.pk)

    changed = []
    for field in USER_FIELDS:
        if field in user_data:
            setattr(user, field, user_data[field])
            changed.append(field)
    if "email" in changed:
        user.username = build_username(user.tenant, user.email)
        changed.append("username")
    if changed:
        user.save(update_fields=changed)


def _check_student_number_free(tenant, student_number, *, exclude_student=None):
    if not student_number:
        return
    students = Student.all_objects.filter(tenant=tenant, student_number=student_number)
    if exclude_student is not None:
        students = students.exclude(pk=exclude_student.pk)
    if students.exists():
        raise ConflictError("A student with this student number already exists.")


def create_student(*, tenant, user_data: dict, student_data: dict) -> Student:
    """Create the login account and the student profile in one transaction."""

    with transaction.atomic():
        _check_student_number_free(tenant, student_data.get("student_number"))
        user = _create_profile_user(tenant, user_data)
        student = Student.all_objects.create(tenant=tenant, user=user, **student_data)
    logger.info(
        "student enrolled",
        extra={"tenant_id": tenant.id, "student_id": student.id},
    )
    return student


def update_student(student: Student, *, user_data: dict, student_data: dict) -> Student:
    with transaction.atomic():
        _check_student_number_free(
            student.tenant,
            student_data.get("student_number"),
            exclude_student=student,
        )
        _update_profile_user(student.user, user_data)
        for field, value in student_data.items():
            setattr(student, field, value)
        student.save()
    return student


def delete_student(student: Student) -> None:
    """Remove the profile, then its user. Protected references abort both (409)."""

    with transaction.atomic():
        user = student.user
        student.delete()
        user.delete()


def _check_employee_number_free(tenant, employee_number, *, exclude_teacher=None):
    if not employee_number:
        return
    teachers = Teacher.all_objects.filter(tenant=tenant, employee_number=employee_number)
    if exclude_teacher is not None:
        teachers = teachers.exclude(pk=exclude_teacher.pk)
    if teachers.exists():
        raise ConflictError("A teacher with this employee number already exists.")


def create_teacher(*, tenant, user_data: dict, teacher_data: dict, assigned_by=None) -> Teacher:
    """Create the login account and teacher profile; grant the Teacher role when it exists."""

    with transaction.atomic():
        _check_employee_number_free(tenant, teacher_data.get("employee_number"))
        user = _create_profile_user(tenant, user_data)
        teacher = Teacher.all_objects.create(tenant=tenant, user=user, **teacher_data)
        role = Role.all_objects.filter(tenant=tenant, name=ROLE_TEACHER).first()
        if role is not None:
            assign_role(user, role, assigned_by=assigned_by)
    logger.info(
        "teacher registered",
        extra={"tenant_id": tenant.id, "teacher_id": teacher.id, "role_granted": role is not None},
    )
    return teacher


def update_teacher(teacher: Teacher, *, user_data: dict, teacher_data: dict) -> Teacher:
    with transaction.atomic():
        _check_employee_number_free(
            teacher.tenant,
            teacher_data.get("employee_number"),
            exclude_teacher=teacher,
        )
        _update_profile_user(teacher.user, user_data)
        for field, value in teacher_data.items():
            setattr(teacher, field, value)
        teacher.save()
    return teacher


def delete_teacher(teacher: Teacher) -> None:
    with transaction.atomic():
        user = teacher.user
        teacher.delete()
        user.delete()


def assign_subject(teacher: Teacher, subject) -> TeacherSubject:
    if TeacherSubject.all_objects.filter(teacher=teacher, subject=subject).exists():
        raise ConflictError("Subject is already assigned to this teacher.")
    return TeacherSubject.all_objects.create(tenant=teacher.tenant, teacher=teacher, subject=subject)


def find_schedule_conflicts(tenant, *, teacher, date, start_time, end_time, exclude_pk=None):
    """Blocking entries of `teacher` on `date` whose time range overlaps [start, end)."""

    conflicts = Schedule.all_objects.filter(
        tenant=tenant,
        teacher=teacher,
        date=date,
        status__in=Schedule.BLOCKING_STATUSES,
        start_time__lt=end_time,
        end_time__gt=start_time,
    )
    if exclude_pk is not None:
        conflicts = conflicts.exclude(pk=exclude_pk)
    return conflicts


def check_schedule_slot(tenant, *, teacher, date, start_time, end_time, status, exclude_pk=None):
    if teacher is None or status not in Schedule.BLOCKING_STATUSES:
        return
    if find_schedule_conflicts(
        tenant,
        teacher=teacher,
        date=date,
        start_time=start_time,
        end_time=end_time,
        exclude_pk=exclude_pk,
    ).exists():
        raise ConflictError("Schedule conflict detected for this teacher at the specified time.")


def compute_schedule_stats(tenant, *, date_from=None, date_to=None) -> dict:
    queryset = Schedule.all_objects.filter(tenant=tenant)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)

    today = timezone.localdate()
    totals = queryset.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(status=Schedule.STATUS_ACTIVE)),
        today=Count("id", filter=Q(date=today)),
        upcoming=Count("id", filter=Q(date__gte=today, date__lte=today + timedelta(days=7))),
    )
    totals["by_type"] = {
        row["schedule_type"]: row["total"]
        for row in queryset.values("schedule_type").annotate(total=Count("id")).order_by("schedule_type")
    }
    totals["by_status"] = {
        row["status"]: row["total"]
        for row in queryset.values("status").annotate(total=Count("id")).order_by("status")
    }
    return totals


def mark_attendance(*, tenant, marked_by, records: list[dict]) -> dict:
    """Upsert one row per (student, date, period), atomically.

    Students outside the tenant are skipped and reported back by position.
    """

    student_ids = {record["student"] for record in records}
    students = {
        student.pk: student
        for student in Student.all_objects.filter(tenant=tenant, pk__in=student_ids)
    }

    created, updated, skipped = [], [], []
    with transaction.atomic():
        for index, record in enumerate(records):
            student = students.get(record["student"])
            if student is None:
                skipped.append({"index": index, "student": record["student"], "error": "Student not found."})
                continue
            defaults = {
                "status": record["status"],
                "school_class": record.get("school_class") or student.current_class,
                "subject": record.get("subject"),
                "reason": record.get("reason", ""),
                "notes": record.get("notes", ""),
                "marked_by": marked_by,
            }
            row, was_created = Attendance.all_objects.update_or_create(
                tenant=tenant,
                student=student,
                date=record["date"],
                period=record.get("period") or Attendance.PERIOD_FULL_DAY,
                defaults=defaults,
            )
            (created if was_created else updated).append(row)

    if skipped:
        logger.warning(
            "attendance records skipped",
            extra={"tenant_id": tenant.id, "skipped": [entry["student"] for entry in skipped]},
        )
    return {"created": created, "updated": updated, "skipped": skipped}


def compute_attendance_stats(tenant, *, date, class_id=None, subject_id=None) -> dict:
    queryset = Attendance.all_objects.filter(tenant=tenant, date=date)
    if class_id:
        queryset = queryset.filter(school_class_id=class_id)
    if subject_id:
        queryset = queryset.filter(subject_id=subject_id)

    counts = {value: 0 for value, _label in Attendance.STATUS_CHOICES}
    for row in queryset.values("status").annotate(total=Count("id")):
        counts[row["status"]] = row["total"]
    total = sum(counts.values())
    return {
        "date": date.isoformat(),
        "stats": counts,
        "total": total,
        "attendance_rate": round(counts[Attendance.STATUS_PRESENT] * 100 / total) if total else 0,
    }


def apply_grade_scores(grade: Grade) -> Grade:
    """Fill percentage, letter and points from raw marks and the exam's scale."""

    examination = grade.examination
    if grade.raw_marks > examination.max_marks:
        raise ValidationError(
            {"raw_marks": [f"Cannot exceed the examination maximum of {examination.max_marks}."]}
        )
    grade.percentage = calculate_percentage(grade.raw_marks, examination.max_marks)
    grade.grade, grade.points = calculate_grade(grade.percentage, examination.exam_level)
    return grade
