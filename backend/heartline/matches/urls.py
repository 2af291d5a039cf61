# heartline/matches/urls.py
from django.urls import path
from .views import DiscoverView, LikeView, MatchListView, PassView, SwipeView

urlpatterns = [
    path("discover", DiscoverView.as_view()),
    path("discover/", DiscoverView.as_view()),
    path("swipe", SwipeView.as_view()),
    path("swipe/", SwipeView.as_view()),
    path("matches", MatchListView.as_view()),
    path("matches/", MatchListView.as_view()),
    path("matches/<int:user_id>/like", LikeView.as_view()),
    path("matches/<int:user_id>/pass", PassView.as_view()),
]
