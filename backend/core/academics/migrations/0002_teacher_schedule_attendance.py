# Generated manually. Keep in sync with academics/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

GENDER_CHOICES = [("MALE", "Male"), ("FEMALE", "Female"), ("OTHER", "Other")]


def tenant_field():
    return models.ForeignKey(
        on_delete=django.db.models.deletion.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
        to="accounts.tenant",
    )


def id_field():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


class Migration(migrations.Migration):
    dependencies = [
        ("academics", "0001_initial"),
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Teacher",
            fields=[
                ("id", id_field()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("employee_number", models.CharField(max_length=40)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                ("gender", models.CharField(blank=True, choices=GENDER_CHOICES, max_length=10)),
                ("nationality", models.CharField(blank=True, max_length=60)),
                ("qualification", models.CharField(blank=True, max_length=200)),
                ("specialization", models.CharField(blank=True, max_length=200)),
                ("experience_years", models.PositiveIntegerField(default=0)),
                ("address", models.TextField(blank=True)),
                ("city", models.CharField(blank=True, max_length=80)),
                ("region", models.CharField(blank=True, max_length=80)),
                ("emergency_contact_name", models.CharField(blank=True, max_length=150)),
                ("emergency_contact_phone", models.CharField(blank=True, max_length=40)),
                ("joining_date", models.DateField(default=django.utils.timezone.localdate)),
                ("teaching_license", models.CharField(blank=True, max_length=80)),
                ("license_expiry", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("ON_LEAVE", "On leave"), ("INACTIVE", "Inactive"), ("TERMINATED", "Terminated")], default="ACTIVE", max_length=20)),
                ("tenant", tenant_field()),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="teacher_profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ("user__last_name", "user__first_name", "id")},
        ),
        migrations.CreateModel(
            name="TeacherSubject",
            fields=[
                ("id", id_field()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("subject", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="teacher_assignments", to="academics.subject")),
                ("teacher", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="subject_assignments", to="academics.teacher")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("subject__name", "id"), "verbose_name": "Subject assignment"},
        ),
        migrations.AddField(
            model_name="teacher",
            name="subjects",
            field=models.ManyToManyField(blank=True, related_name="teachers", through="academics.TeacherSubject", to="academics.subject"),
        ),
        migrations.CreateModel(
            name="Schedule",
            fields=[
                ("id", id_field()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=150)),
                ("schedule_type", models.CharField(choices=[("CLASS", "Class"), ("EXAM", "Exam"), ("EVENT", "Event"), ("MEETING", "Meeting")], default="CLASS", max_length=20)),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("location", models.CharField(blank=True, max_length=120)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("ACTIVE", "Active"), ("COMPLETED", "Completed"), ("CANCELLED", "Cancelled")], default="ACTIVE", max_length=20)),
                ("description", models.TextField(blank=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_schedules", to=settings.AUTH_USER_MODEL)),
                ("school_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="schedules", to="academics.schoolclass")),
                ("subject", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="schedules", to="academics.subject")),
                ("teacher", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="schedules", to="academics.teacher")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("date", "start_time", "id")},
        ),
        migrations.CreateModel(
            name="Attendance",
            fields=[
                ("id", id_field()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("date", models.DateField()),
                ("period", models.CharField(default="FULL_DAY", max_length=30)),
                ("status", models.CharField(choices=[("PRESENT", "Present"), ("ABSENT", "Absent"), ("LATE", "Late"), ("EXCUSED", "Excused"), ("SICK", "Sick")], max_length=10)),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("marked_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="marked_attendance", to=settings.AUTH_USER_MODEL)),
                ("school_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="attendance_records", to="academics.schoolclass")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attendance_records", to="academics.student")),
                ("subject", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="attendance_records", to="academics.subject")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-date", "student__student_number", "id"), "verbose_name": "Attendance record"},
        ),
        migrations.AddConstraint(
            model_name="teacher",
            constraint=models.UniqueConstraint(fields=("tenant", "employee_number"), name="uq_teacher_tenant_employee_number"),
        ),
        migrations.AddConstraint(
            model_name="teachersubject",
            constraint=models.UniqueConstraint(fields=("teacher", "subject"), name="uq_teacher_subject"),
        ),
        migrations.AddConstraint(
            model_name="attendance",
            constraint=models.UniqueConstraint(fields=("tenant", "student", "date", "period"), name="uq_attendance_student_date_period"),
        ),
    ]
