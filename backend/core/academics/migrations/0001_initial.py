# Generated manually. Keep in sync with academics/models.py.

from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

LEVEL_CHOICES = [
    ("PRIMARY", "Primary"),
    ("O_LEVEL", "O-Level"),
    ("A_LEVEL", "A-Level"),
    ("UNIVERSITY", "University"),
]


def tenant_field():
    return models.ForeignKey(
        on_delete=django.db.models.deletion.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
        to="accounts.tenant",
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AcademicYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=50)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("is_current", models.BooleanField(default=False)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-start_date", "id")},
        ),
        migrations.CreateModel(
            name="SchoolClass",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("code", models.CharField(max_length=30)),
                ("level", models.CharField(choices=LEVEL_CHOICES, default="O_LEVEL", max_length=20)),
                ("capacity", models.PositiveIntegerField(default=40)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("academic_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="classes", to="academics.academicyear")),
                ("class_teacher", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="taught_classes", to=settings.AUTH_USER_MODEL)),
                ("tenant", tenant_field()),
            ],
            options={
                "verbose_name": "Class",
                "verbose_name_plural": "Classes",
                "ordering": ("name", "id"),
            },
        ),
        migrations.CreateModel(
            name="Subject",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("code", models.CharField(max_length=30)),
                ("level", models.CharField(blank=True, choices=LEVEL_CHOICES, max_length=20)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("name", "id")},
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("student_number", models.CharField(max_length=40)),
                ("admission_number", models.CharField(blank=True, max_length=40)),
                ("date_of_birth", models.DateField()),
                ("gender", models.CharField(choices=[("MALE", "Male"), ("FEMALE", "Female"), ("OTHER", "Other")], max_length=10)),
                ("nationality", models.CharField(blank=True, max_length=60)),
                ("address", models.TextField(blank=True)),
                ("city", models.CharField(blank=True, max_length=80)),
                ("region", models.CharField(blank=True, max_length=80)),
                ("emergency_contact_name", models.CharField(blank=True, max_length=150)),
                ("emergency_contact_phone", models.CharField(blank=True, max_length=40)),
                ("admission_date", models.DateField(default=django.utils.timezone.localdate)),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("INACTIVE", "Inactive"), ("SUSPENDED", "Suspended"), ("GRADUATED", "Graduated"), ("TRANSFERRED", "Transferred")], default="ACTIVE", max_length=20)),
                ("medical_info", models.TextField(blank=True)),
                ("current_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="students", to="academics.schoolclass")),
                ("tenant", tenant_field()),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="student_profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ("user__last_name", "user__first_name", "id")},
        ),
        migrations.CreateModel(
            name="Examination",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150)),
                ("exam_type", models.CharField(choices=[("QUIZ", "Quiz"), ("MID_TERM", "Mid-term"), ("FINAL", "Final"), ("MOCK", "Mock"), ("NECTA", "NECTA"), ("ASSIGNMENT", "Assignment"), ("PROJECT", "Project")], max_length=20)),
                ("exam_level", models.CharField(choices=LEVEL_CHOICES, default="O_LEVEL", max_length=20)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True, null=True)),
                ("max_marks", models.PositiveIntegerField(default=100, validators=[django.core.validators.MinValueValidator(1)])),
                ("weight", models.DecimalField(decimal_places=2, default=Decimal("1.00"), max_digits=5)),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=[("SCHEDULED", "Scheduled"), ("ONGOING", "Ongoing"), ("COMPLETED", "Completed"), ("CANCELLED", "Cancelled")], default="SCHEDULED", max_length=20)),
                ("academic_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="examinations", to="academics.academicyear")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_examinations", to=settings.AUTH_USER_MODEL)),
                ("school_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="examinations", to="academics.schoolclass")),
                ("subject", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="examinations", to="academics.subject")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-start_date", "-id")},
        ),
        migrations.CreateModel(
            name="Grade",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("raw_marks", models.DecimalField(decimal_places=2, max_digits=6, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("percentage", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=5)),
                ("grade", models.CharField(blank=True, max_length=3)),
                ("points", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=4)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("PUBLISHED", "Published")], default="DRAFT", max_length=20)),
                ("comments", models.TextField(blank=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="recorded_grades", to=settings.AUTH_USER_MODEL)),
                ("examination", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="grades", to="academics.examination")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="grades", to="academics.student")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.AddConstraint(
            model_name="academicyear",
            constraint=models.UniqueConstraint(fields=("tenant", "name"), name="uq_academic_year_tenant_name"),
        ),
        migrations.AddConstraint(
            model_name="schoolclass",
            constraint=models.UniqueConstraint(fields=("tenant", "code"), name="uq_school_class_tenant_code"),
        ),
        migrations.AddConstraint(
            model_name="subject",
            constraint=models.UniqueConstraint(fields=("tenant", "code"), name="uq_subject_tenant_code"),
        ),
        migrations.AddConstraint(
            model_name="student",
            constraint=models.UniqueConstraint(fields=("tenant", "student_number"), name="uq_student_tenant_number"),
        ),
        migrations.AddConstraint(
            model_name="grade",
            constraint=models.UniqueConstraint(fields=("examination", "student"), name="uq_grade_examination_student"),
        ),
    ]
