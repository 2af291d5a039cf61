# heartline/chat/views.py
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from heartline.common.exceptions import AuthorizationError, NotFoundError
from heartline.common.responses import ok
from heartline.matches.services import is_mutual_match
from heartline.realtime.delivery import broadcast_to_group, chat_group_name
from heartline.users.models import User
from .services import (
    append,
    conversation_id,
    history,
    list_conversations,
    mark_message_read,
    mark_read,
    serialize_message,
)


def _matched_partner(request, user_id: int) -> User:
    other = User.objects.filter(id=user_id).first()
    if not other:
        raise NotFoundError("user not found", code="USER_NOT_FOUND")
    if not is_mutual_match(request.user, other):
        raise AuthorizationError("You must match with this user before messaging")
    return other


class ConversationListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return ok(list_conversations(request.user))


class MessageThreadView(APIView):
    permission_classes = [IsAuthenticated]

    # GET /api/messages/<userId> : 대화 내역 + 상대가 보낸 건 읽음 처리
    def get(self, request, user_id: int):
        other = _matched_partner(request, user_id)
        conv_id = conversation_id(request.user.id, other.id)
        messages = [serialize_message(m) for m in history(conv_id)]
        mark_read(conv_id, request.user.id)
        return ok({"conversationId": conv_id, "messages": messages})

    # POST /api/messages/<userId>  body: { "body": "hi" }
    def post(self, request, user_id: int):
        other = _matched_partner(request, user_id)
        conv_id = conversation_id(request.user.id, other.id)
        body = request.data.get("body")
        if body is None:
            body = request.data.get("content")
        message = append(conv_id, request.user.id, body)

        payload = serialize_message(message)
        broadcast_to_group(chat_group_name(conv_id), "new-message", payload)
        return ok(payload, http_status=201)


class MessageReadView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, message_id: int):
        message = mark_message_read(message_id, request.user)
        return ok(serialize_message(message))
