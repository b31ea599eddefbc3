from django.urls import path

from academics.views import (
    AcademicYearDetailAPIView,
    AcademicYearListCreateAPIView,
    AttendanceDetailAPIView,
    AttendanceListCreateAPIView,
    AttendanceStatsAPIView,
    ExaminationDetailAPIView,
    ExaminationListCreateAPIView,
    GradeDetailAPIView,
    GradeExportAPIView,
    GradeListCreateAPIView,
    ScheduleDetailAPIView,
    ScheduleExportAPIView,
    ScheduleListCreateAPIView,
    ScheduleStatsAPIView,
    SchoolClassDetailAPIView,
    SchoolClassListCreateAPIView,
    SchoolClassStudentsAPIView,
    StudentDetailAPIView,
    StudentListCreateAPIView,
    SubjectDetailAPIView,
    SubjectListCreateAPIView,
    TeacherDetailAPIView,
    TeacherListCreateAPIView,
    TeacherSubjectDetailAPIView,
    TeacherSubjectsAPIView,
)

urlpatterns = [
    path("academic-years/", AcademicYearListCreateAPIView.as_view(), name="academic-years-list"),
    path(
        "academic-years/<int:pk>/",
        AcademicYearDetailAPIView.as_view(),
        name="academic-years-detail",
    ),
    path("classes/", SchoolClassListCreateAPIView.as_view(), name="classes-list"),
    path("classes/<int:pk>/", SchoolClassDetailAPIView.as_view(), name="classes-detail"),
    path(
        "classes/<int:pk>/students/",
        SchoolClassStudentsAPIView.as_view(),
        name="classes-students",
    ),
    path("subjects/", SubjectListCreateAPIView.as_view(), name="subjects-list"),
    path("subjects/<int:pk>/", SubjectDetailAPIView.as_view(), name="subjects-detail"),
    path("students/", StudentListCreateAPIView.as_view(), name="students-list"),
    path("students/<int:pk>/", StudentDetailAPIView.as_view(), name="students-detail"),
    path("teachers/", TeacherListCreateAPIView.as_view(), name="teachers-list"),
    path("teachers/<int:pk>/", TeacherDetailAPIView.as_view(), name="teachers-detail"),
    path(
        "teachers/<int:pk>/subjects/",
        TeacherSubjectsAPIView.as_view(),
        name="teachers-subjects",
    ),
    path(
        "teachers/<int:pk>/subjects/<int:subject_id>/",
        TeacherSubjectDetailAPIView.as_view(),
        name="teachers-subjects-detail",
    ),
    path("schedules/", ScheduleListCreateAPIView.as_view(), name="schedules-list"),
    path("schedules/stats/", ScheduleStatsAPIView.as_view(), name="schedules-stats"),
    path("schedules/export/", ScheduleExportAPIView.as_view(), name="schedules-export"),
    path("schedules/<int:pk>/", ScheduleDetailAPIView.as_view(), name="schedules-detail"),
    path("attendance/", AttendanceListCreateAPIView.as_view(), name="attendance-list"),
    path("attendance/stats/", AttendanceStatsAPIView.as_view(), name="attendance-stats"),
    path("attendance/<int:pk>/", AttendanceDetailAPIView.as_view(), name="attendance-detail"),
    path("examinations/", ExaminationListCreateAPIView.as_view(), name="examinations-list"),
    path("examinations/grades/", GradeListCreateAPIView.as_view(), name="grades-list"),
    path("examinations/grades/export/", GradeExportAPIView.as_view(), name="grades-export"),
    path("examinations/grades/<int:pk>/", GradeDetailAPIView.as_view(), name="grades-detail"),
    path(
        "examinations/<int:pk>/",
        ExaminationDetailAPIView.as_view(),
        name="examinations-detail",
    ),
]
