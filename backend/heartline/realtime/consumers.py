# heartline/realtime/consumers.py
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from heartline.calls.signaling import CallEvent, call_channel_name
from heartline.chat import services as chat
from heartline.common.exceptions import DomainError
from heartline.matches.services import is_mutual_match
from heartline.users.models import User
from .apps import get_call_tracker, get_presence_registry
from .delivery import adeliver_to_user, chat_group_name, relay_message

logger = logging.getLogger(__name__)


def _arg(payload, key):
    """payload 가 {"key": v} 이든 그냥 v 이든 둘 다 받음 (socket.io 식 단일 인자)."""
    if isinstance(payload, dict):
        return payload.get(key)
    return payload


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@database_sync_to_async
def _set_online_flag(user_id, online: bool):
    User.objects.filter(id=user_id).update(is_online=online)


@database_sync_to_async
def _user_name(user_id):
    return User.objects.filter(id=user_id).values_list("name", flat=True).first()


@database_sync_to_async
def _matched(a, b):
    return is_mutual_match(a, b)


@database_sync_to_async
def _append(conv_id, sender_id, body):
    return chat.serialize_message(chat.append(conv_id, sender_id, body))


@database_sync_to_async
def _history(conv_id):
    return [chat.serialize_message(m) for m in chat.history(conv_id)]


class GatewayConsumer(AsyncJsonWebsocketConsumer):
    """
    Realtime gateway (chat + call signaling), one socket per client.
      - URL: ws://<host>/ws/realtime/?token=<jwt>
      - Envelope (both directions): {"type": "...", "payload": ...}

    Anything the gateway cannot deliver (target offline, bad payload, not a
    participant) is dropped without an error frame.
    """

    handlers = {
        "user-online": "on_user_online",
        "join-chat": "on_join_chat",
        "send-message": "on_send_message",
        "get-messages": "on_get_messages",
        CallEvent.REQUEST.value: "on_call_request",
        CallEvent.ACCEPT.value: "on_call_accepted",
        CallEvent.REJECT.value: "on_call_rejected",
        CallEvent.ICE.value: "on_ice_candidate",
        CallEvent.END.value: "on_call_ended",
    }

    def __init__(self, *args, presence=None, calls=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.presence = presence if presence is not None else get_presence_registry()
        self.calls = calls if calls is not None else get_call_tracker()
        self.auth_user_id = None
        self.user_id = None  # user-online 받은 뒤에 세팅
        self.chat_groups = set()

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            # 4401 Unauthorized (앱에서 처리하기 쉬움)
            await self.close(code=4401)
            return

        self.auth_user_id = user.id
        await self.accept()

    async def disconnect(self, close_code):
        for group in self.chat_groups:
            await self.channel_layer.group_discard(group, self.channel_name)
        self.chat_groups.clear()

        user_id = self.user_id
        if not user_id:
            return

        # 다른 소켓이 이미 자리 잡았으면 (재접속) 그쪽은 건드리지 않음
        if self.presence.clear(user_id, self.channel_name):
            await _set_online_flag(user_id, False)
            ended = self.calls.end_calls_for(user_id)
            logger.info("user %s offline (code=%s, calls ended=%s)", user_id, close_code, ended)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return

        try:
            data = json.loads(text_data)
        except ValueError:
            logger.debug("drop malformed frame from %s", self.channel_name)
            return
        if not isinstance(data, dict):
            return

        msg_type = data.get("type")
        handler_name = self.handlers.get(msg_type)
        if handler_name is None:
            logger.debug("drop unknown event %r", msg_type)
            return

        # user-online 전에 오는 이벤트는 무시
        if msg_type != "user-online" and not self.user_id:
            logger.debug("drop %s before user-online", msg_type)
            return

        await getattr(self, handler_name)(data.get("payload"))

    # ---- presence ----

    async def on_user_online(self, payload):
        user_id = _as_int(_arg(payload, "userId"))
        if user_id != self.auth_user_id:
            logger.debug("drop user-online for %s on socket of %s", user_id, self.auth_user_id)
            return

        self.user_id = user_id
        self.presence.set_online(user_id, self.channel_name)
        await _set_online_flag(user_id, True)
        logger.info("user %s online", user_id)

    # ---- chat ----

    def _participant_conversation(self, payload):
        conv_id = _arg(payload, "conversationId")
        if chat.other_participant(conv_id, self.user_id) is None:
            logger.debug("user %s is not in conversation %r", self.user_id, conv_id)
            return None
        return conv_id

    async def on_join_chat(self, payload):
        conv_id = self._participant_conversation(payload)
        if conv_id is None:
            return

        group = chat_group_name(conv_id)
        await self.channel_layer.group_add(group, self.channel_name)
        self.chat_groups.add(group)

    async def on_send_message(self, payload):
        if not isinstance(payload, dict):
            return
        conv_id = self._participant_conversation(payload)
        if conv_id is None:
            return
        if _as_int(payload.get("senderId")) != self.user_id:
            logger.debug("drop message with foreign senderId from %s", self.user_id)
            return

        other_id = chat.other_participant(conv_id, self.user_id)
        if not await _matched(self.user_id, other_id):
            logger.debug("drop message %s -> %s: not matched", self.user_id, other_id)
            return

        try:
            message = await _append(conv_id, self.user_id, payload.get("body"))
        except DomainError as exc:
            logger.debug("drop message from %s: %s", self.user_id, exc.message)
            return

        # 저장 먼저, 그 다음 그룹 전체(보낸 사람 포함)에 브로드캐스트
        await self.channel_layer.group_send(
            chat_group_name(conv_id), relay_message("new-message", message)
        )

    async def on_get_messages(self, payload):
        conv_id = self._participant_conversation(payload)
        if conv_id is None:
            return
        await self.send_event("chat-messages", await _history(conv_id))

    # ---- call signaling (point-to-point, gated on presence only) ----

    async def on_call_request(self, payload):
        target_id = _as_int(_arg(payload, "targetId"))
        if not target_id or target_id == self.user_id:
            return

        if not self.presence.is_online(target_id):
            logger.debug("drop call-request %s -> %s: offline", self.user_id, target_id)
            return

        # 상대가 접속해 있을 때만 통화 시도로 기록
        channel = call_channel_name(self.user_id, target_id)
        self.calls.apply(channel, CallEvent.REQUEST)

        event = {
            "callerId": self.user_id,
            "callerName": await _user_name(self.user_id),
            "channel": channel,
        }
        if isinstance(payload, dict) and payload.get("offer") is not None:
            event["offer"] = payload["offer"]
        await adeliver_to_user(target_id, "incoming-call", event, presence=self.presence)

    async def on_call_accepted(self, payload):
        caller_id = _as_int(_arg(payload, "callerId"))
        if not caller_id:
            return

        channel = call_channel_name(caller_id, self.user_id)
        self.calls.apply(channel, CallEvent.ACCEPT)

        event = {"accepterId": self.user_id, "channel": channel}
        if isinstance(payload, dict) and payload.get("answer") is not None:
            event["answer"] = payload["answer"]
        await adeliver_to_user(caller_id, "call-answered", event, presence=self.presence)

    async def on_call_rejected(self, payload):
        caller_id = _as_int(_arg(payload, "callerId"))
        if not caller_id:
            return

        channel = call_channel_name(caller_id, self.user_id)
        self.calls.apply(channel, CallEvent.REJECT)
        await adeliver_to_user(
            caller_id,
            "call-rejected",
            {"rejecterId": self.user_id, "channel": channel},
            presence=self.presence,
        )

    async def on_ice_candidate(self, payload):
        if not isinstance(payload, dict):
            return
        target_id = _as_int(payload.get("targetId"))
        if not target_id:
            return

        self.calls.apply(call_channel_name(self.user_id, target_id), CallEvent.ICE)
        # candidate 는 그대로 전달 (검증 안 함)
        await adeliver_to_user(
            target_id,
            "ice-candidate",
            {"fromUserId": self.user_id, "candidate": payload.get("candidate")},
            presence=self.presence,
        )

    async def on_call_ended(self, payload):
        target_id = _as_int(_arg(payload, "targetId"))
        if not target_id:
            return

        channel = call_channel_name(self.user_id, target_id)
        self.calls.apply(channel, CallEvent.END)
        await adeliver_to_user(
            target_id,
            "call-ended",
            {"fromUserId": self.user_id, "channel": channel},
            presence=self.presence,
        )

    # ---- outbound ----

    async def send_event(self, event: str, payload=None):
        await self.send_json({"type": event, "payload": payload})

    async def relay_event(self, event):
        """channel layer 'relay.event' handler (group_send / send 둘 다 여기로)."""
        await self.send_event(event.get("event"), event.get("payload"))
