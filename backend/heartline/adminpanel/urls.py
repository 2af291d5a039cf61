# heartline/adminpanel/urls.py
from django.urls import path
from .views import AdminUserDetailView, AdminUserListView, VideoSettingsView

urlpatterns = [
    path("users", AdminUserListView.as_view()),
    path("users/", AdminUserListView.as_view()),
    path("users/<int:user_id>", AdminUserDetailView.as_view()),
    path("users/<int:user_id>/", AdminUserDetailView.as_view()),
    path("video-settings", VideoSettingsView.as_view()),
    path("video-settings/", VideoSettingsView.as_view()),
]
