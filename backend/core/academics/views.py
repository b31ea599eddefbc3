import csv

from django.db import transaction
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from academics.models import (
    AcademicYear,
    Attendance,
    Examination,
    Grade,
    Schedule,
    SchoolClass,
    Student,
    Subject,
    Teacher,
    TeacherSubject,
)
from academics.serializers import (
    AcademicYearSerializer,
    AttendanceMarkSerializer,
    AttendanceSerializer,
    AttendanceUpdateSerializer,
    ExaminationSerializer,
    GradeSerializer,
    GradeUpdateSerializer,
    ScheduleSerializer,
    SchoolClassSerializer,
    StudentSerializer,
    SubjectSerializer,
    TeacherSerializer,
    TeacherSubjectAssignSerializer,
)
from academics.services import (
    apply_grade_scores,
    assign_subject,
    check_schedule_slot,
    compute_attendance_stats,
    compute_schedule_stats,
    create_student,
    create_teacher,
    delete_student,
    delete_teacher,
    mark_attendance,
    update_student,
    update_teacher,
)
from audit.models import AuditLog
from audit.services import snapshot_instance
from tenancy.exceptions import ConflictError, NotFound
from tenancy.permissions import HasTenantPermission, get_request_tenant
from tenancy.rbac import PermissionCode, Resource, build_permission_matrix
from tenancy.views import TenantScopedAPIViewMixin, parse_date_param


class AcademicYearListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = AcademicYear
    serializer_class = AcademicYearSerializer
    tenant_resource = Resource.ACADEMIC_YEARS
    ordering = ("-start_date", "id")
    search_fields = ("name",)
    boolean_filters = {"is_current": "is_current"}


class AcademicYearDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = AcademicYear
    serializer_class = AcademicYearSerializer
    tenant_resource = Resource.ACADEMIC_YEARS


class SchoolClassListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = SchoolClass
    serializer_class = SchoolClassSerializer
    tenant_resource = Resource.CLASSES
    ordering = ("name", "id")
    search_fields = ("name", "code", "description")
    choice_filters = {"level": "level"}
    exact_filters = {"academic_year_id": "academic_year_id", "teacher_id": "class_teacher_id"}
    boolean_filters = {"is_active": "is_active"}

    def get_queryset(self):
        return super().get_queryset().select_related("academic_year", "class_teacher")


class SchoolClassDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = SchoolClass
    serializer_class = SchoolClassSerializer
    tenant_resource = Resource.CLASSES


class SchoolClassStudentsAPIView(TenantScopedAPIViewMixin, generics.ListAPIView):
    """Students enrolled in one class; readable with either permission."""

    model = SchoolClass
    serializer_class = StudentSerializer
    required_permissions = build_permission_matrix(
        read=(PermissionCode.STUDENTS_READ, PermissionCode.CLASSES_READ),
    )
    search_fields = ("user__first_name", "user__last_name", "user__email", "student_number")
    choice_filters = {"status": "status"}

    def get_queryset(self):
        school_class = self.get_school_class()
        return (
            Student.objects.filter(tenant=self.tenant, current_class=school_class)
            .select_related("user", "current_class")
            .order_by("user__last_name", "user__first_name", "id")
        )

    def get_school_class(self):
        school_class = SchoolClass.objects.filter(tenant=self.tenant, pk=self.kwargs["pk"]).first()
        if school_class is None:
            raise NotFound("Class not found.")
        return school_class


class SubjectListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Subject
    serializer_class = SubjectSerializer
    tenant_resource = Resource.SUBJECTS
    ordering = ("name", "id")
    search_fields = ("name", "code", "description")
    choice_filters = {"level": "level"}
    boolean_filters = {"is_active": "is_active"}


class SubjectDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Subject
    serializer_class = SubjectSerializer
    tenant_resource = Resource.SUBJECTS


class ProfileWriteMixin:
    """Split `user.*` serializer data from the profile fields."""

    def split_validated_data(self, serializer):
        data = dict(serializer.validated_data)
        return data.pop("user", {}), data


class StudentListCreateAPIView(ProfileWriteMixin, TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Student
    serializer_class = StudentSerializer
    tenant_resource = Resource.STUDENTS
    search_fields = (
        "user__first_name",
        "user__last_name",
        "user__email",
        "student_number",
        "admission_number",
    )
    choice_filters = {"status": "status", "gender": "gender"}
    exact_filters = {"class_id": "current_class_id"}
    date_range_field = "admission_date"

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("user", "current_class")
            .order_by("user__last_name", "user__first_name", "id")
        )

    def perform_create(self, serializer):
        user_data, student_data = self.split_validated_data(serializer)
        with transaction.atomic():
            student = create_student(
                tenant=self.tenant,
                user_data=user_data,
                student_data=student_data,
            )
            self.record_audit(AuditLog.ACTION_CREATE, student, after=snapshot_instance(student))
        serializer.instance = student
        return student


class StudentDetailAPIView(ProfileWriteMixin, TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Student
    serializer_class = StudentSerializer
    tenant_resource = Resource.STUDENTS

    def get_queryset(self):
        return super().get_queryset().select_related("user", "current_class")

    def perform_update(self, serializer):
        user_data, student_data = self.split_validated_data(serializer)
        with transaction.atomic():
            before = snapshot_instance(serializer.instance)
            student = update_student(
                serializer.instance,
                user_data=user_data,
                student_data=student_data,
            )
            self.record_audit(
                AuditLog.ACTION_UPDATE,
                student,
                before=before,
                after=snapshot_instance(student),
            )
        serializer.instance = student
        return student

    def perform_destroy(self, instance):
        with transaction.atomic():
            before = snapshot_instance(instance)
            pk = instance.pk
            delete_student(instance)
            instance.pk = pk
            self.record_audit(AuditLog.ACTION_DELETE, instance, before=before)


class TeacherListCreateAPIView(ProfileWriteMixin, TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Teacher
    serializer_class = TeacherSerializer
    tenant_resource = Resource.TEACHERS
    search_fields = (
        "user__first_name",
        "user__last_name",
        "user__email",
        "employee_number",
        "specialization",
    )
    choice_filters = {"status": "status", "gender": "gender"}
    exact_filters = {"subject_id": "subjects__id"}
    date_range_field = "joining_date"

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("user")
            .prefetch_related("subjects")
            .order_by("user__last_name", "user__first_name", "id")
        )

    def perform_create(self, serializer):
        user_data, teacher_data = self.split_validated_data(serializer)
        with transaction.atomic():
            teacher = create_teacher(
                tenant=self.tenant,
                user_data=user_data,
                teacher_data=teacher_data,
                assigned_by=self.request.user,
            )
            self.record_audit(AuditLog.ACTION_CREATE, teacher, after=snapshot_instance(teacher))
        serializer.instance = teacher
        return teacher


class TeacherDetailAPIView(ProfileWriteMixin, TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Teacher
    serializer_class = TeacherSerializer
    tenant_resource = Resource.TEACHERS

    def get_queryset(self):
        return super().get_queryset().select_related("user").prefetch_related("subjects")

    def perform_update(self, serializer):
        user_data, teacher_data = self.split_validated_data(serializer)
        with transaction.atomic():
            before = snapshot_instance(serializer.instance)
            teacher = update_teacher(
                serializer.instance,
                user_data=user_data,
                teacher_data=teacher_data,
            )
            self.record_audit(
                AuditLog.ACTION_UPDATE,
                teacher,
                before=before,
                after=snapshot_instance(teacher),
            )
        serializer.instance = teacher
        return teacher

    def perform_destroy(self, instance):
        with transaction.atomic():
            before = snapshot_instance(instance)
            pk = instance.pk
            delete_teacher(instance)
            instance.pk = pk
            self.record_audit(AuditLog.ACTION_DELETE, instance, before=before)


TEACHER_SUBJECT_PERMISSIONS = build_permission_matrix(
    read=PermissionCode.TEACHERS_READ,
    create=PermissionCode.TEACHERS_UPDATE,
    delete=PermissionCode.TEACHERS_UPDATE,
)


class TeacherSubjectsMixin(TenantScopedAPIViewMixin):
    model = TeacherSubject
    required_permissions = TEACHER_SUBJECT_PERMISSIONS

    def get_teacher(self):
        teacher = Teacher.objects.filter(tenant=self.tenant, pk=self.kwargs["pk"]).first()
        if teacher is None:
            raise NotFound("Teacher not found.")
        return teacher


class TeacherSubjectsAPIView(TeacherSubjectsMixin, generics.GenericAPIView):
    """Subjects taught by one teacher; POST `{"subject": id}` adds one."""

    serializer_class = TeacherSubjectAssignSerializer

    def get(self, request, pk):
        teacher = self.get_teacher()
        subjects = teacher.subjects.order_by("name", "id")
        return Response(SubjectSerializer(subjects, many=True).data)

    def post(self, request, pk):
        teacher = self.get_teacher()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subject = serializer.validated_data["subject"]
        with transaction.atomic():
            assignment = assign_subject(teacher, subject)
            self.record_audit(
                AuditLog.ACTION_CREATE,
                assignment,
                after={"teacher": teacher.pk, "subject": subject.pk},
            )
        return Response(
            {
                "success": True,
                "data": SubjectSerializer(subject).data,
                "message": "Subject assigned successfully.",
            },
            status=status.HTTP_201_CREATED,
        )


class TeacherSubjectDetailAPIView(TeacherSubjectsMixin, generics.GenericAPIView):
    def delete(self, request, pk, subject_id):
        teacher = self.get_teacher()
        assignment = TeacherSubject.objects.filter(teacher=teacher, subject_id=subject_id).first()
        if assignment is None:
            raise NotFound("Assignment not found.")
        self.perform_destroy(assignment)
        return Response({"success": True, "data": None, "message": "Subject removed successfully."})


class ExaminationListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Examination
    serializer_class = ExaminationSerializer
    tenant_resource = Resource.EXAMINATIONS
    creator_field = "created_by"
    ordering = ("-start_date", "-id")
    search_fields = ("name", "description", "subject__name")
    choice_filters = {
        "exam_type": "exam_type",
        "exam_level": "exam_level",
        "status": "status",
    }
    exact_filters = {
        "subject_id": "subject_id",
        "class_id": "school_class_id",
        "academic_year_id": "academic_year_id",
    }
    date_range_field = "start_date"

    def get_queryset(self):
        return super().get_queryset().select_related("subject", "school_class")


class ExaminationDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Examination
    serializer_class = ExaminationSerializer
    tenant_resource = Resource.EXAMINATIONS

    def perform_update(self, serializer):
        rescore = bool({"max_marks", "exam_level"} & set(serializer.validated_data))
        with transaction.atomic():
            instance = super().perform_update(serializer)
            if rescore:
                for grade in Grade.all_objects.filter(examination=instance).select_related("examination"):
                    apply_grade_scores(grade)
                    grade.save(update_fields=["percentage", "grade", "points", "updated_at"])
        return instance


class GradeQuerysetMixin(TenantScopedAPIViewMixin):
    model = Grade
    tenant_resource = Resource.GRADES
    ordering = ("-created_at", "-id")
    search_fields = (
        "student__user__first_name",
        "student__user__last_name",
        "student__student_number",
        "examination__name",
    )
    choice_filters = {"status": "status", "grade": "grade"}
    exact_filters = {
        "examination_id": "examination_id",
        "student_id": "student_id",
        "subject_id": "examination__subject_id",
        "academic_year_id": "examination__academic_year_id",
        "class_id": "examination__school_class_id",
    }

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("examination", "examination__subject", "student", "student__user", "created_by")
        )


class GradeListCreateAPIView(GradeQuerysetMixin, generics.ListCreateAPIView):
    serializer_class = GradeSerializer

    def perform_create(self, serializer):
        data = serializer.validated_data
        with transaction.atomic():
            if Grade.all_objects.filter(
                tenant=self.tenant,
                examination=data["examination"],
                student=data["student"],
            ).exists():
                raise ConflictError("A grade for this student and examination already exists.")
            grade = Grade(tenant=self.tenant, created_by=self.request.user, **data)
            apply_grade_scores(grade)
            grade.save()
            self.record_audit(AuditLog.ACTION_CREATE, grade, after=snapshot_instance(grade))
        serializer.instance = grade
        return grade


class GradeDetailAPIView(GradeQuerysetMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = GradeUpdateSerializer

    def perform_update(self, serializer):
        with transaction.atomic():
            before = snapshot_instance(serializer.instance)
            grade = serializer.instance
            for field, value in serializer.validated_data.items():
                setattr(grade, field, value)
            apply_grade_scores(grade)
            grade.save()
            self.record_audit(
                AuditLog.ACTION_UPDATE,
                grade,
                before=before,
                after=snapshot_instance(grade),
            )
        return grade


GRADE_EXPORT_COLUMNS = (
    "Student Name",
    "Student Email",
    "Examination",
    "Subject",
    "Raw Marks",
    "Max Marks",
    "Percentage",
    "Grade",
    "Points",
    "Status",
    "Exam Date",
    "Comments",
    "Graded By",
)


class GradeExportAPIView(GradeQuerysetMixin, generics.GenericAPIView):
    """CSV download of the filtered grade list."""

    pagination_class = None
    required_permissions = build_permission_matrix(read=PermissionCode.GRADES_READ)

    def get(self, request):
        grades = self.filter_queryset(self.get_queryset())
        filename = f"grades-export-{timezone.localdate().isoformat()}.csv"
        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow(GRADE_EXPORT_COLUMNS)
        count = 0
        for grade in grades.iterator():
            examination = grade.examination
            writer.writerow(
                [
                    grade.student.full_name,
                    grade.student.user.email,
                    examination.name,
                    examination.subject.name if examination.subject_id else "",
                    grade.raw_marks,
                    examination.max_marks,
                    f"{grade.percentage:.1f}",
                    grade.grade,
                    grade.points,
                    grade.status,
                    examination.start_date.isoformat(),
                    grade.comments,
                    grade.created_by.get_full_name() if grade.created_by_id else "",
                ]
            )
            count += 1

        self.record_audit(AuditLog.ACTION_EXPORT, None, details={"rows": count, "filename": filename})
        return response


class ScheduleQuerysetMixin(TenantScopedAPIViewMixin):
    model = Schedule
    tenant_resource = Resource.SCHEDULES
    ordering = ("date", "start_time", "id")
    search_fields = ("title", "location", "description", "subject__name")
    choice_filters = {"type": "schedule_type", "status": "status"}
    exact_filters = {
        "teacher_id": "teacher_id",
        "subject_id": "subject_id",
        "class_id": "school_class_id",
        "date": "date",
    }
    date_range_field = "date"

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("subject", "teacher", "teacher__user", "school_class")
        )


class ScheduleListCreateAPIView(ScheduleQuerysetMixin, generics.ListCreateAPIView):
    serializer_class = ScheduleSerializer
    creator_field = "created_by"

    def perform_create(self, serializer):
        data = serializer.validated_data
        with transaction.atomic():
            check_schedule_slot(
                self.tenant,
                teacher=data.get("teacher"),
                date=data["date"],
                start_time=data["start_time"],
                end_time=data["end_time"],
                status=data.get("status", Schedule.STATUS_ACTIVE),
            )
            return super().perform_create(serializer)


class ScheduleDetailAPIView(ScheduleQuerysetMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ScheduleSerializer

    def perform_update(self, serializer):
        instance = serializer.instance
        data = serializer.validated_data
        with transaction.atomic():
            check_schedule_slot(
                self.tenant,
                teacher=data.get("teacher", instance.teacher),
                date=data.get("date", instance.date),
                start_time=data.get("start_time", instance.start_time),
                end_time=data.get("end_time", instance.end_time),
                status=data.get("status", instance.status),
                exclude_pk=instance.pk,
            )
            return super().perform_update(serializer)


class ScheduleStatsAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.SCHEDULES_READ)

    def get(self, request):
        params = request.query_params
        stats = compute_schedule_stats(
            get_request_tenant(request),
            date_from=parse_date_param(params.get("date_from"), "date_from"),
            date_to=parse_date_param(params.get("date_to"), "date_to"),
        )
        return Response(stats)


SCHEDULE_EXPORT_COLUMNS = (
    "Title",
    "Type",
    "Date",
    "Start Time",
    "End Time",
    "Subject",
    "Teacher",
    "Class",
    "Location",
    "Status",
    "Description",
)


class ScheduleExportAPIView(ScheduleQuerysetMixin, generics.GenericAPIView):
    """CSV download of the filtered timetable."""

    pagination_class = None
    required_permissions = build_permission_matrix(read=PermissionCode.SCHEDULES_READ)

    def get(self, request):
        schedules = self.filter_queryset(self.get_queryset())
        filename = f"schedules-export-{timezone.localdate().isoformat()}.csv"
        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow(SCHEDULE_EXPORT_COLUMNS)
        count = 0
        for schedule in schedules.iterator():
            writer.writerow(
                [
                    schedule.title,
                    schedule.schedule_type,
                    schedule.date.isoformat(),
                    schedule.start_time.strftime("%H:%M"),
                    schedule.end_time.strftime("%H:%M"),
                    f"{schedule.subject.name} ({schedule.subject.code})" if schedule.subject_id else "",
                    schedule.teacher.full_name if schedule.teacher_id else "",
                    schedule.school_class.name if schedule.school_class_id else "",
                    schedule.location,
                    schedule.status,
                    schedule.description,
                ]
            )
            count += 1

        self.record_audit(AuditLog.ACTION_EXPORT, None, details={"rows": count, "filename": filename})
        return response


class AttendanceQuerysetMixin(TenantScopedAPIViewMixin):
    model = Attendance
    tenant_resource = Resource.ATTENDANCE
    ordering = ("-date", "student__student_number", "id")
    search_fields = (
        "student__user__first_name",
        "student__user__last_name",
        "student__student_number",
    )
    choice_filters = {"status": "status"}
    exact_filters = {
        "date": "date",
        "student_id": "student_id",
        "class_id": "school_class_id",
        "subject_id": "subject_id",
    }
    date_range_field = "date"

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("student", "student__user", "school_class", "marked_by")
        )


class AttendanceListCreateAPIView(AttendanceQuerysetMixin, generics.ListCreateAPIView):
    """List attendance, or mark a batch with `{"records": [...]}`.

    Marking is an upsert on (student, date, period). Students of other
    tenants are skipped and reported in `skipped`.
    """

    def get_serializer_class(self):
        if self.request.method == "POST":
            return AttendanceMarkSerializer
        return AttendanceSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            result = mark_attendance(
                tenant=self.tenant,
                marked_by=request.user,
                records=serializer.validated_data["records"],
            )
            self.record_audit(
                AuditLog.ACTION_CREATE,
                None,
                details={
                    "bulk": True,
                    "created": len(result["created"]),
                    "updated": len(result["updated"]),
                    "skipped": result["skipped"],
                },
            )

        rows = result["created"] + result["updated"]
        return Response(
            {
                "success": True,
                "data": {
                    "created": len(result["created"]),
                    "updated": len(result["updated"]),
                    "skipped": result["skipped"],
                    "records": AttendanceSerializer(rows, many=True).data,
                },
                "message": f"Attendance marked for {len(rows)} student(s).",
            },
            status=status.HTTP_201_CREATED,
        )


class AttendanceDetailAPIView(AttendanceQuerysetMixin, generics.RetrieveUpdateDestroyAPIView):
    def get_serializer_class(self):
        if self.request.method in ("PUT", "PATCH"):
            return AttendanceUpdateSerializer
        return AttendanceSerializer

    def perform_update(self, serializer):
        serializer.validated_data["marked_by"] = self.request.user
        return super().perform_update(serializer)


class AttendanceStatsAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.ATTENDANCE_READ)

    def get(self, request):
        params = request.query_params
        stats = compute_attendance_stats(
            get_request_tenant(request),
            date=parse_date_param(params.get("date"), "date") or timezone.localdate(),
            class_id=(params.get("class_id") or "").strip() or None,
            subject_id=(params.get("subject_id") or "").strip() or None,
        )
        return Response(stats)
