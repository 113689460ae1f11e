# core/urls.py
from django.urls import path, include

from . import views

urlpatterns = [
    path('', views.home, name='home'),
    path('dashboard/', views.dashboard, name='dashboard'),
    path('dashboard/summary/', views.dashboard_summary, name='dashboard_summary'),

    # JSON API
    path('api/', include('core.api.urls')),

    # Downloads
    path('downloads/report-cards/<int:learner_id>/', views.report_card_pdf, name='report_card_pdf'),
    path('downloads/classes/<int:class_id>/report-cards/', views.class_report_cards_pdf, name='class_report_cards_pdf'),
    path('downloads/templates/classes/', views.class_template, name='class_template'),
    path('downloads/templates/learners/', views.learner_template, name='learner_template'),
    path('downloads/classes/<int:class_id>/marks-template/', views.marks_template, name='marks_template'),
    path('downloads/classes/<int:class_id>/compiled-marks/', views.compiled_marks_csv, name='compiled_marks_csv'),
    path('downloads/attendance/', views.attendance_overview_csv, name='attendance_overview_csv'),
    path('downloads/results-analysis/', views.results_analysis_pdf, name='results_analysis_pdf'),
    path('downloads/classes/<int:class_id>/results-analysis/', views.subject_analysis_pdf, name='subject_analysis_pdf'),
]
