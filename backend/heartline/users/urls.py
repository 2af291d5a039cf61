# heartline/users/urls.py
from django.urls import path
from .views import MeView, PhotoDetailView, PhotoPrimaryView, PhotoUploadView, ProfileView

urlpatterns = [
    path("me", MeView.as_view()),  # GET/PUT/DELETE /api/users/me
    path("me/", MeView.as_view()),
    path("me/profile", ProfileView.as_view()),
    path("me/profile/", ProfileView.as_view()),
    path("me/photos", PhotoUploadView.as_view()),
    path("me/photos/", PhotoUploadView.as_view()),
    path("me/photos/<int:photo_id>", PhotoDetailView.as_view()),
    path("me/photos/<int:photo_id>/primary", PhotoPrimaryView.as_view()),
]
