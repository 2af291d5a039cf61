# heartline/chat/urls.py
from django.urls import path
from .views import ConversationListView, MessageReadView, MessageThreadView

urlpatterns = [
    path("messages", ConversationListView.as_view()),
    path("messages/", ConversationListView.as_view()),
    path("messages/<int:user_id>", MessageThreadView.as_view()),
    path("messages/<int:user_id>/", MessageThreadView.as_view()),
    path("messages/<int:message_id>/read", MessageReadView.as_view()),
]
