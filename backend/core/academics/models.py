from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from tenancy.models import BaseTenantModel

LEVEL_PRIMARY = "PRIMARY"
LEVEL_O_LEVEL = "O_LEVEL"
LEVEL_A_LEVEL = "A_LEVEL"
LEVEL_UNIVERSITY = "UNIVERSITY"
LEVEL_CHOICES = [
    (LEVEL_PRIMARY, "Primary"),
    (LEVEL_O_LEVEL, "O-Level"),
    (LEVEL_A_LEVEL, "A-Level"),
    (LEVEL_UNIVERSITY, "University"),
]


class AcademicYear(BaseTenantModel):
    name = models.CharField(max_length=50)
    start_date = models.DateField()
    end_date = models.DateField()
    is_current = models.BooleanField(default=False)

    class Meta:
        ordering = ("-start_date", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "name"),
                name="uq_academic_year_tenant_name",
            ),
        ]

    def __str__(self):
        return self.name


class SchoolClass(BaseTenantModel):
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=30)
    level = models.CharField(max_length=20, choices=LEVEL_CHOICES, default=LEVEL_O_LEVEL)
    capacity = models.PositiveIntegerField(default=40)
    academic_year = models.ForeignKey(
        AcademicYear,
        on_delete=models.SET_NULL,
        related_name="classes",
        null=True,
        blank=True,
    )
    class_teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="taught_classes",
        null=True,
        blank=True,
    )
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("name", "id")
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "code"),
                name="uq_school_class_tenant_code",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"


class Subject(BaseTenantModel):
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=30)
    level = models.CharField(max_length=20, choices=LEVEL_CHOICES, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("name", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "code"),
                name="uq_subject_tenant_code",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"


class Student(BaseTenantModel):
    GENDER_MALE = "MALE"
    GENDER_FEMALE = "FEMALE"
    GENDER_OTHER = "OTHER"
    GENDER_CHOICES = [
        (GENDER_MALE, "Male"),
        (GENDER_FEMALE, "Female"),
        (GENDER_OTHER, "Other"),
    ]

    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"
    STATUS_SUSPENDED = "SUSPENDED"
    STATUS_GRADUATED = "GRADUATED"
    STATUS_TRANSFERRED = "TRANSFERRED"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
        (STATUS_SUSPENDED, "Suspended"),
        (STATUS_GRADUATED, "Graduated"),
        (STATUS_TRANSFERRED, "Transferred"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="student_profile",
    )
    student_number = models.CharField(max_length=40)
    admission_number = models.CharField(max_length=40, blank=True)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    nationality = models.CharField(max_length=60, blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=80, blank=True)
    region = models.CharField(max_length=80, blank=True)
    emergency_contact_name = models.CharField(max_length=150, blank=True)
    emergency_contact_phone = models.CharField(max_length=40, blank=True)
    admission_date = models.DateField(default=timezone.localdate)
    current_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        related_name="students",
        null=True,
        blank=True,
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    medical_info = models.TextField(blank=True)

    class Meta:
        ordering = ("user__last_name", "user__first_name", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "student_number"),
                name="uq_student_tenant_number",
            ),
        ]

    def __str__(self):
        return f"{self.user.get_full_name()} ({self.student_number})"

    @property
    def full_name(self) -> str:
        return self.user.get_full_name()


class Examination(BaseTenantModel):
    TYPE_QUIZ = "QUIZ"
    TYPE_MID_TERM = "MID_TERM"
    TYPE_FINAL = "FINAL"
    TYPE_MOCK = "MOCK"
    TYPE_NECTA = "NECTA"
    TYPE_ASSIGNMENT = "ASSIGNMENT"
    TYPE_PROJECT = "PROJECT"
    TYPE_CHOICES = [
        (TYPE_QUIZ, "Quiz"),
        (TYPE_MID_TERM, "Mid-term"),
        (TYPE_FINAL, "Final"),
        (TYPE_MOCK, "Mock"),
        (TYPE_NECTA, "NECTA"),
        (TYPE_ASSIGNMENT, "Assignment"),
        (TYPE_PROJECT, "Project"),
    ]

    STATUS_SCHEDULED = "SCHEDULED"
    STATUS_ONGOING = "ONGOING"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_ONGOING, "Ongoing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    name = models.CharField(max_length=150)
    exam_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    exam_level = models.CharField(max_length=20, choices=LEVEL_CHOICES, default=LEVEL_O_LEVEL)
    subject = models.ForeignKey(
        Subject,
        on_delete=models.PROTECT,
        related_name="examinations",
        null=True,
        blank=True,
    )
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        related_name="examinations",
        null=True,
        blank=True,
    )
    academic_year = models.ForeignKey(
        AcademicYear,
        on_delete=models.SET_NULL,
        related_name="examinations",
        null=True,
        blank=True,
    )
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    max_marks = models.PositiveIntegerField(default=100, validators=[MinValueValidator(1)])
    weight = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("1.00"))
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_examinations",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-start_date", "-id")

    def __str__(self):
        return self.name


class Grade(BaseTenantModel):
    STATUS_DRAFT = "DRAFT"
    STATUS_PUBLISHED = "PUBLISHED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
    ]

    examination = models.ForeignKey(Examination, on_delete=models.CASCADE, related_name="grades")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="grades")
    raw_marks = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"))
    grade = models.CharField(max_length=3, blank=True)
    points = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    comments = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="recorded_grades",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-created_at", "-id")
        constraints = [
            models.UniqueConstraint(
                fields=("examination", "student"),
                name="uq_grade_examination_student",
            ),
        ]

    def __str__(self):
        return f"{self.student_id}:{self.examination_id} {self.grade}"


class Teacher(BaseTenantModel):
    STATUS_ACTIVE = "ACTIVE"
    STATUS_ON_LEAVE = "ON_LEAVE"
    STATUS_INACTIVE = "INACTIVE"
    STATUS_TERMINATED = "TERMINATED"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_ON_LEAVE, "On leave"),
        (STATUS_INACTIVE, "Inactive"),
        (STATUS_TERMINATED, "Terminated"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="teacher_profile",
    )
    employee_number = models.CharField(max_length=40)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=Student.GENDER_CHOICES, blank=True)
    nationality = models.CharField(max_length=60, blank=True)
    qualification = models.CharField(max_length=200, blank=True)
    specialization = models.CharField(max_length=200, blank=True)
    experience_years = models.PositiveIntegerField(default=0)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=80, blank=True)
    region = models.CharField(max_length=80, blank=True)
    emergency_contact_name = models.CharField(max_length=150, blank=True)
    emergency_contact_phone = models.CharField(max_length=40, blank=True)
    joining_date = models.DateField(default=timezone.localdate)
    teaching_license = models.CharField(max_length=80, blank=True)
    license_expiry = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    subjects = models.ManyToManyField(
        Subject,
        through="TeacherSubject",
        related_name="teachers",
        blank=True,
    )

    class Meta:
        ordering = ("user__last_name", "user__first_name", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "employee_number"),
                name="uq_teacher_tenant_employee_number",
            ),
        ]

    def __str__(self):
        return f"{self.user.get_full_name()} ({self.employee_number})"

    @property
    def full_name(self) -> str:
        return self.user.get_full_name()


class TeacherSubject(BaseTenantModel):
    teacher = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name="subject_assignments")
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name="teacher_assignments")

    class Meta:
        ordering = ("subject__name", "id")
        verbose_name = "Subject assignment"
        constraints = [
            models.UniqueConstraint(
                fields=("teacher", "subject"),
                name="uq_teacher_subject",
            ),
        ]


class Schedule(BaseTenantModel):
    TYPE_CLASS = "CLASS"
    TYPE_EXAM = "EXAM"
    TYPE_EVENT = "EVENT"
    TYPE_MEETING = "MEETING"
    TYPE_CHOICES = [
        (TYPE_CLASS, "Class"),
        (TYPE_EXAM, "Exam"),
        (TYPE_EVENT, "Event"),
        (TYPE_MEETING, "Meeting"),
    ]

    STATUS_DRAFT = "DRAFT"
    STATUS_ACTIVE = "ACTIVE"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    # Only these occupy the teacher's time slot.
    BLOCKING_STATUSES = (STATUS_DRAFT, STATUS_ACTIVE)

    title = models.CharField(max_length=150)
    schedule_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_CLASS)
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    subject = models.ForeignKey(
        Subject,
        on_delete=models.SET_NULL,
        related_name="schedules",
        null=True,
        blank=True,
    )
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        related_name="schedules",
        null=True,
        blank=True,
    )
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        related_name="schedules",
        null=True,
        blank=True,
    )
    location = models.CharField(max_length=120, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_schedules",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("date", "start_time", "id")

    def __str__(self):
        return f"{self.title} {self.date} {self.start_time:%H:%M}"


class Attendance(BaseTenantModel):
    STATUS_PRESENT = "PRESENT"
    STATUS_ABSENT = "ABSENT"
    STATUS_LATE = "LATE"
    STATUS_EXCUSED = "EXCUSED"
    STATUS_SICK = "SICK"
    STATUS_CHOICES = [
        (STATUS_PRESENT, "Present"),
        (STATUS_ABSENT, "Absent"),
        (STATUS_LATE, "Late"),
        (STATUS_EXCUSED, "Excused"),
        (STATUS_SICK, "Sick"),
    ]

    PERIOD_FULL_DAY = "FULL_DAY"

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="attendance_records")
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        related_name="attendance_records",
        null=True,
        blank=True,
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.SET_NULL,
        related_name="attendance_records",
        null=True,
        blank=True,
    )
    date = models.DateField()
    period = models.CharField(max_length=30, default=PERIOD_FULL_DAY)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    reason = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="marked_attendance",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-date", "student__student_number", "id")
        verbose_name = "Attendance record"
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "student", "date", "period"),
                name="uq_attendance_student_date_period",
            ),
        ]

    def __str__(self):
        return f"{self.student_id} {self.date} {self.period}: {self.status}"
