from rest_framework import serializers

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
)


class AcademicYearSerializer(serializers.ModelSerializer):
    class Meta:
        model = AcademicYear
        fields = ("id", "name", "start_date", "end_date", "is_current", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": ["Must be on or after start_date."]})
        return attrs


class SchoolClassSerializer(serializers.ModelSerializer):
    class_teacher_name = serializers.CharField(source="class_teacher.get_full_name", read_only=True)
    academic_year_name = serializers.CharField(source="academic_year.name", read_only=True)
    student_count = serializers.SerializerMethodField()

    class Meta:
        model = SchoolClass
        fields = (
            "id",
            "name",
            "code",
            "level",
            "capacity",
            "academic_year",
            "academic_year_name",
            "class_teacher",
            "class_teacher_name",
            "description",
            "is_active",
            "student_count",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def get_student_count(self, obj: SchoolClass) -> int:
        return obj.students.count()

    def validate_class_teacher(self, value):
        view = self.context.get("view")
        if value is not None and view is not None and value.tenant_id != view.tenant.id:
            raise serializers.ValidationError("Invalid pk - object does not exist.")
        return value


class SubjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subject
        fields = ("id", "name", "code", "level", "description", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class StudentSerializer(serializers.ModelSerializer):
    first_name = serializers.CharField(source="user.first_name", max_length=150)
    last_name = serializers.CharField(source="user.last_name", max_length=150)
    email = serializers.EmailField(source="user.email")
    phone = serializers.CharField(source="user.phone", max_length=40, required=False, allow_blank=True)
    full_name = serializers.CharField(read_only=True)
    current_class_name = serializers.CharField(source="current_class.name", read_only=True)

    class Meta:
        model = Student
        fields = (
            "id",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone",
            "student_number",
            "admission_number",
            "date_of_birth",
            "gender",
            "nationality",
            "address",
            "city",
            "region",
            "emergency_contact_name",
            "emergency_contact_phone",
            "admission_date",
            "current_class",
            "current_class_name",
            "status",
            "medical_info",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "full_name", "current_class_name", "created_at", "updated_at")
        # Uniqueness is checked in the service so duplicates map to 409.
        validators = []


class ExaminationSerializer(serializers.ModelSerializer):
    subject_name = serializers.CharField(source="subject.name", read_only=True)
    class_name = serializers.CharField(source="school_class.name", read_only=True)
    grade_count = serializers.SerializerMethodField()

    class Meta:
        model = Examination
        fields = (
            "id",
            "name",
            "exam_type",
            "exam_level",
            "subject",
            "subject_name",
            "school_class",
            "class_name",
            "academic_year",
            "start_date",
            "end_date",
            "max_marks",
            "weight",
            "description",
            "status",
            "grade_count",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_by", "created_at", "updated_at")

    def get_grade_count(self, obj: Examination) -> int:
        return obj.grades.count()

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": ["Must be on or after start_date."]})
        return attrs


class GradeSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.full_name", read_only=True)
    examination_name = serializers.CharField(source="examination.name", read_only=True)
    max_marks = serializers.IntegerField(source="examination.max_marks", read_only=True)

    class Meta:
        model = Grade
        fields = (
            "id",
            "examination",
            "examination_name",
            "student",
            "student_name",
            "raw_marks",
            "max_marks",
            "percentage",
            "grade",
            "points",
            "status",
            "comments",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "percentage",
            "grade",
            "points",
            "created_by",
            "created_at",
            "updated_at",
        )
        validators = []


class GradeUpdateSerializer(GradeSerializer):
    class Meta(GradeSerializer.Meta):
        read_only_fields = GradeSerializer.Meta.read_only_fields + ("examination", "student")


class TeacherSerializer(serializers.ModelSerializer):
    first_name = serializers.CharField(source="user.first_name", max_length=150)
    last_name = serializers.CharField(source="user.last_name", max_length=150)
    email = serializers.EmailField(source="user.email")
    phone = serializers.CharField(source="user.phone", max_length=40, required=False, allow_blank=True)
    full_name = serializers.CharField(read_only=True)
    subjects = serializers.SerializerMethodField()

    class Meta:
        model = Teacher
        fields = (
            "id",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone",
            "employee_number",
            "date_of_birth",
            "gender",
            "nationality",
            "qualification",
            "specialization",
            "experience_years",
            "address",
            "city",
            "region",
            "emergency_contact_name",
            "emergency_contact_phone",
            "joining_date",
            "teaching_license",
            "license_expiry",
            "status",
            "subjects",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "full_name", "subjects", "created_at", "updated_at")
        validators = []

    def get_subjects(self, obj: Teacher) -> list[dict]:
        return [
            {"id": subject.pk, "name": subject.name, "code": subject.code}
            for subject in obj.subjects.order_by("name", "id")
        ]


class TeacherSubjectAssignSerializer(serializers.Serializer):
    subject = serializers.PrimaryKeyRelatedField(queryset=Subject.objects)


class ScheduleSerializer(serializers.ModelSerializer):
    teacher_name = serializers.CharField(source="teacher.full_name", read_only=True)
    subject_name = serializers.CharField(source="subject.name", read_only=True)
    class_name = serializers.CharField(source="school_class.name", read_only=True)

    class Meta:
        model = Schedule
        fields = (
            "id",
            "title",
            "schedule_type",
            "date",
            "start_time",
            "end_time",
            "subject",
            "subject_name",
            "teacher",
            "teacher_name",
            "school_class",
            "class_name",
            "location",
            "status",
            "description",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_by", "created_at", "updated_at")

    def validate(self, attrs):
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"end_time": ["Must be after start_time."]})
        return attrs


class AttendanceSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.full_name", read_only=True)
    student_number = serializers.CharField(source="student.student_number", read_only=True)
    class_name = serializers.CharField(source="school_class.name", read_only=True)
    marked_by_name = serializers.CharField(source="marked_by.get_full_name", read_only=True)

    class Meta:
        model = Attendance
        fields = (
            "id",
            "student",
            "student_name",
            "student_number",
            "school_class",
            "class_name",
            "subject",
            "date",
            "period",
            "status",
            "reason",
            "notes",
            "marked_by",
            "marked_by_name",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "marked_by", "created_at", "updated_at")


class AttendanceUpdateSerializer(AttendanceSerializer):
    class Meta(AttendanceSerializer.Meta):
        read_only_fields = AttendanceSerializer.Meta.read_only_fields + ("student", "date", "period")


class AttendanceRecordSerializer(serializers.Serializer):
    # A plain id so students of other tenants are reported, not rejected.
    student = serializers.IntegerField(min_value=1)
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=Attendance.STATUS_CHOICES)
    period = serializers.CharField(max_length=30, required=False, allow_blank=True)
    school_class = serializers.PrimaryKeyRelatedField(
        queryset=SchoolClass.objects,
        required=False,
        allow_null=True,
    )
    subject = serializers.PrimaryKeyRelatedField(
        queryset=Subject.objects,
        required=False,
        allow_null=True,
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class AttendanceMarkSerializer(serializers.Serializer):
    records = AttendanceRecordSerializer(many=True, allow_empty=False)
