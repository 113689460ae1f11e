# core/api/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from core.api import views

router = DefaultRouter()
router.register(r'classes', views.ClassViewSet, basename='class')
router.register(r'learners', views.LearnerViewSet, basename='learner')
router.register(r'teachers', views.TeacherViewSet, basename='teacher')
router.register(r'assignments', views.AssignmentViewSet, basename='assignment')
router.register(r'marks', views.MarksViewSet, basename='mark')
router.register(r'reports', views.ReportViewSet, basename='report')
router.register(r'attendance', views.AttendanceViewSet, basename='attendance')
router.register(r'assessments', views.AssessmentViewSet, basename='assessment')
router.register(r'lesson-plans', views.LessonPlanViewSet, basename='lessonplan')
router.register(r'schemes', views.SchemeViewSet, basename='scheme')

urlpatterns = [
    path('admin/stats/', views.AdminStatsView.as_view(), name='admin-stats'),
    path('', include(router.urls)),
]
