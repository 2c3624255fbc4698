from django.urls import path
from .views import (
    JobCategoriesView,
    JobDetailView,
    JobFlashcardsView,
    JobListCreateView,
    JobNotesView,
    JobQuizQuestionsView,
    JobStatusView,
    PresignUploadView,
)

urlpatterns = [
    path("jobs/", JobListCreateView.as_view(), name="jobs"),
    path("jobs/<uuid:job_id>/", JobDetailView.as_view(), name="job_detail"),
    path("jobs/<uuid:job_id>/status/", JobStatusView.as_view(), name="job_status"),
    path("jobs/<uuid:job_id>/notes/", JobNotesView.as_view(), name="job_notes"),
    path("jobs/<uuid:job_id>/categories/", JobCategoriesView.as_view(), name="job_categories"),
    path("jobs/<uuid:job_id>/quiz-questions/", JobQuizQuestionsView.as_view(), name="job_quiz_questions"),
    path("jobs/<uuid:job_id>/flashcards/", JobFlashcardsView.as_view(), name="job_flashcards"),
    path("uploads/presign/", PresignUploadView.as_view(), name="uploads_presign"),
]
