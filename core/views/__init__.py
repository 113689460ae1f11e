# core/views/__init__.py
from .dashboard_views import home, dashboard, dashboard_summary
from .download_views import (
    report_card_pdf, class_report_cards_pdf, class_template, learner_template,
    marks_template, compiled_marks_csv, attendance_overview_csv,
    results_analysis_pdf, subject_analysis_pdf,
)
