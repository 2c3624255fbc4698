from django.urls import include, path

urlpatterns = [
    path("api/", include("media_jobs.urls")),
]
