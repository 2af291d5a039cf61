# heartline/chat/services.py
import logging
from typing import List, Optional, Tuple

from django.conf import settings
from django.db.models import Q

from heartline.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from heartline.users.models import User
from .models import Message

logger = logging.getLogger(__name__)

SEPARATOR = "_"


def conversation_id(user_a, user_b) -> str:
    """두 유저 id 를 정렬해서 이어붙임. 인자 순서와 무관하게 같은 값."""
    low, high = sorted((int(user_a), int(user_b)))
    return f"{low}{SEPARATOR}{high}"


def parse_conversation_id(value) -> Optional[Tuple[int, int]]:
    """(low, high) 또는 형식이 안 맞으면 None."""
    parts = str(value or "").split(SEPARATOR)
    if len(parts) != 2:
        return None
    try:
        low, high = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if low >= high or conversation_id(low, high) != value:
        return None
    return low, high


def other_participant(conv_id, user_id) -> Optional[int]:
    pair = parse_conversation_id(conv_id)
    if pair is None or int(user_id) not in pair:
        return None
    return pair[1] if pair[0] == int(user_id) else pair[0]


def append(conv_id, sender_id, body) -> Message:
    """
    메시지 저장. 매칭 여부는 여기서 안 봄 (HTTP/gateway 쪽 책임).
    """
    body = body if isinstance(body, str) else ""
    max_length = settings.MESSAGE_MAX_LENGTH
    if not body.strip():
        raise ValidationError("message body is required", fields={"body": "required"})
    if len(body) > max_length:
        raise ValidationError(
            f"message body exceeds {max_length} characters",
            fields={"body": f"max {max_length} characters"},
        )

    recipient_id = other_participant(conv_id, sender_id)
    if recipient_id is None:
        raise ValidationError(
            "sender is not part of this conversation",
            fields={"conversationId": "invalid"},
        )
    if not User.objects.filter(id=recipient_id).exists():
        raise NotFoundError("recipient not found", code="USER_NOT_FOUND")

    message = Message.objects.create(
        conversation_id=conv_id,
        sender_id=int(sender_id),
        recipient_id=recipient_id,
        body=body,
        is_read=False,
    )
    logger.debug("message %s stored in %s", message.id, conv_id)
    return message


def history(conv_id) -> List[Message]:
    return list(Message.objects.filter(conversation_id=conv_id).order_by("created_at", "id"))


def mark_read(conv_id, reader_id) -> int:
    return Message.objects.filter(
        conversation_id=conv_id, recipient_id=int(reader_id), is_read=False
    ).update(is_read=True)


def mark_message_read(message_id, reader: User) -> Message:
    message = Message.objects.filter(id=message_id).first()
    if not message:
        raise NotFoundError("message not found", code="MESSAGE_NOT_FOUND")
    if message.recipient_id != reader.id:
        raise AuthorizationError("only the recipient can mark a message read")
    if not message.is_read:
        message.is_read = True
        message.save(update_fields=["is_read"])
    return message


def list_conversations(user: User) -> List[dict]:
    conv_ids = (
        Message.objects.filter(Q(sender=user) | Q(recipient=user))
        .order_by()
        .values_list("conversation_id", flat=True)
        .distinct()
    )

    items = []
    for conv_id in conv_ids:
        partner_id = other_participant(conv_id, user.id)
        if partner_id is None:
            continue
        latest = (
            Message.objects.filter(conversation_id=conv_id)
            .order_by("-created_at", "-id")
            .first()
        )
        unread = Message.objects.filter(
            conversation_id=conv_id, recipient=user, is_read=False
        ).count()
        items.append(
            {
                "conversationId": conv_id,
                "userId": partner_id,
                "latestMessage": serialize_message(latest),
                "unreadCount": unread,
                "_sortKey": (latest.created_at, latest.id),
            }
        )

    # 최근 대화 먼저
    items.sort(key=lambda x: x["_sortKey"], reverse=True)
    for it in items:
        del it["_sortKey"]
    return items


def serialize_message(message: Message) -> dict:
    return {
        "id": message.id,
        "conversationId": message.conversation_id,
        "senderId": message.sender_id,
        "recipientId": message.recipient_id,
        "body": message.body,
        "isRead": message.is_read,
        "createdAt": message.created_at.isoformat(),
    }
