# heartline/calls/urls.py
from django.urls import path
from .views import CallTokenView

urlpatterns = [
    path("token", CallTokenView.as_view()),
    path("token/", CallTokenView.as_view()),
]
