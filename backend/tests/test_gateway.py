"""
Realtime gateway over a real channel layer (in-memory) with
WebsocketCommunicator. Each test gets its own presence registry and call
tracker injected into the consumer.
"""
import asyncio

import pytest
import pytest_asyncio
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from rest_framework.test import APIClient

from heartline.chat.models import Message
from heartline.chat.services import conversation_id
from heartline.matches.services import record_action
from heartline.realtime.apps import get_presence_registry
from heartline.realtime.consumers import GatewayConsumer
from heartline.users.models import User

from .conftest import create_user, like_each_other

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]

acreate_user = database_sync_to_async(create_user)
alike_each_other = database_sync_to_async(like_each_other)


class _ForceUser:
    def __init__(self, inner, user):
        self.inner = inner
        self.user = user

    async def __call__(self, scope, receive, send):
        return await self.inner(dict(scope, user=self.user), receive, send)


async def connect(user, presence, tracker):
    app = GatewayConsumer.as_asgi(presence=presence, calls=tracker)
    communicator = WebsocketCommunicator(_ForceUser(app, user), "/ws/realtime/")
    connected, _ = await communicator.connect()
    assert connected
    return communicator


async def wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


async def go_online(communicator, user, presence):
    await communicator.send_json_to({"type": "user-online", "payload": user.id})
    await wait_for(lambda: presence.lookup(user.id) is not None)


async def online(user, presence, tracker):
    communicator = await connect(user, presence, tracker)
    await go_online(communicator, user, presence)
    return communicator


async def join(communicator, conv):
    """join-chat has no reply; get-messages afterwards proves it was processed."""
    await communicator.send_json_to({"type": "join-chat", "payload": conv})
    await communicator.send_json_to({"type": "get-messages", "payload": conv})
    reply = await communicator.receive_json_from(timeout=2)
    assert reply["type"] == "chat-messages"
    return reply["payload"]


@pytest_asyncio.fixture(autouse=True)
async def _fresh_layer():
    await get_channel_layer().flush()


async def test_anonymous_connection_is_refused(presence, tracker):
    app = GatewayConsumer.as_asgi(presence=presence, calls=tracker)
    communicator = WebsocketCommunicator(_ForceUser(app, AnonymousUser()), "/ws/realtime/")

    connected, code = await communicator.connect()

    assert connected is False
    assert code == 4401


async def test_user_online_registers_presence_and_disconnect_clears_it(presence, tracker):
    a = await acreate_user("A")
    communicator = await online(a, presence, tracker)

    assert presence.lookup(a.id) is not None
    assert (await database_sync_to_async(User.objects.get)(id=a.id)).is_online is True

    await communicator.disconnect()

    assert presence.lookup(a.id) is None
    assert (await database_sync_to_async(User.objects.get)(id=a.id)).is_online is False


async def test_user_online_for_someone_else_is_ignored(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    communicator = await connect(a, presence, tracker)

    await communicator.send_json_to({"type": "user-online", "payload": {"userId": b.id}})
    assert await communicator.receive_nothing(timeout=0.1)

    assert len(presence) == 0
    await communicator.disconnect()


async def test_events_before_user_online_are_dropped(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    communicator = await connect(a, presence, tracker)

    await communicator.send_json_to(
        {"type": "get-messages", "payload": conversation_id(a.id, b.id)}
    )
    assert await communicator.receive_nothing(timeout=0.1)
    await communicator.disconnect()


async def test_displaced_connection_closing_keeps_new_one_registered(presence, tracker):
    a = await acreate_user("A")
    first = await online(a, presence, tracker)
    first_handle = presence.lookup(a.id)

    second = await connect(a, presence, tracker)
    await second.send_json_to({"type": "user-online", "payload": a.id})
    await wait_for(lambda: presence.lookup(a.id) not in (None, first_handle))
    second_handle = presence.lookup(a.id)

    await first.disconnect()

    assert presence.lookup(a.id) == second_handle
    await second.disconnect()
    assert presence.lookup(a.id) is None


async def test_chat_message_is_persisted_and_broadcast_to_conversation(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    await alike_each_other(a, b)
    conv = conversation_id(a.id, b.id)

    ca = await online(a, presence, tracker)
    cb = await online(b, presence, tracker)
    assert await join(ca, conv) == []
    assert await join(cb, conv) == []

    await ca.send_json_to(
        {
            "type": "send-message",
            "payload": {"conversationId": conv, "body": "hi", "senderId": a.id},
        }
    )

    echo = await ca.receive_json_from(timeout=2)
    delivered = await cb.receive_json_from(timeout=2)
    assert echo == delivered
    assert delivered["type"] == "new-message"
    assert delivered["payload"]["body"] == "hi"
    assert delivered["payload"]["senderId"] == a.id
    assert delivered["payload"]["recipientId"] == b.id
    assert delivered["payload"]["isRead"] is False

    await cb.send_json_to({"type": "get-messages", "payload": conv})
    reply = await cb.receive_json_from(timeout=2)
    assert reply["type"] == "chat-messages"
    assert [m["body"] for m in reply["payload"]] == ["hi"]

    await ca.disconnect()
    await cb.disconnect()


async def test_message_posted_over_http_reaches_joined_socket(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    await alike_each_other(a, b)
    conv = conversation_id(a.id, b.id)
    cb = await online(b, presence, tracker)
    await join(cb, conv)

    @database_sync_to_async
    def post_as_a():
        client = APIClient()
        client.force_authenticate(user=a)
        return client.post(f"/api/messages/{b.id}", {"body": "over http"}, format="json")

    res = await post_as_a()
    assert res.status_code == 201

    delivered = await cb.receive_json_from(timeout=2)
    assert delivered == {"type": "new-message", "payload": res.json()["data"]}
    assert delivered["payload"]["body"] == "over http"

    await cb.disconnect()


async def test_no_leak_into_other_conversations(presence, tracker):
    a, b, c = await acreate_user("A"), await acreate_user("B"), await acreate_user("C")
    await alike_each_other(a, b)
    await alike_each_other(a, c)

    ca = await online(a, presence, tracker)
    cc = await online(c, presence, tracker)
    await join(ca, conversation_id(a.id, b.id))
    await join(cc, conversation_id(a.id, c.id))
    # c cannot join a conversation it is not part of
    await cc.send_json_to({"type": "join-chat", "payload": conversation_id(a.id, b.id)})

    await ca.send_json_to(
        {
            "type": "send-message",
            "payload": {
                "conversationId": conversation_id(a.id, b.id),
                "body": "only for b",
                "senderId": a.id,
            },
        }
    )

    assert (await ca.receive_json_from(timeout=2))["type"] == "new-message"
    assert await cc.receive_nothing(timeout=0.2)

    await ca.disconnect()
    await cc.disconnect()


@pytest.mark.parametrize("reason", ["not-matched", "foreign-sender", "empty-body"])
async def test_undeliverable_messages_are_dropped_silently(presence, tracker, reason):
    a, b = await acreate_user("A"), await acreate_user("B")
    if reason != "not-matched":
        await alike_each_other(a, b)
    conv = conversation_id(a.id, b.id)

    ca = await online(a, presence, tracker)
    await join(ca, conv)

    payload = {"conversationId": conv, "body": "hi", "senderId": a.id}
    if reason == "foreign-sender":
        payload["senderId"] = b.id
    if reason == "empty-body":
        payload["body"] = "  "
    await ca.send_json_to({"type": "send-message", "payload": payload})

    assert await ca.receive_nothing(timeout=0.2)
    assert await database_sync_to_async(Message.objects.count)() == 0
    await ca.disconnect()


async def test_malformed_frames_are_ignored(presence, tracker):
    a = await acreate_user("A")
    ca = await online(a, presence, tracker)

    await ca.send_to(text_data="{not json")
    await ca.send_json_to(["not", "an", "object"])
    await ca.send_json_to({"type": "no-such-event", "payload": {}})
    await ca.send_json_to({"type": "send-message", "payload": "just a string"})

    assert await ca.receive_nothing(timeout=0.2)
    assert presence.lookup(a.id) is not None
    await ca.disconnect()


async def test_new_match_is_pushed_to_both_online_users(tracker):
    presence = get_presence_registry()
    a, b = await acreate_user("A"), await acreate_user("B")
    ca = await online(a, presence, tracker)
    cb = await online(b, presence, tracker)

    first = await database_sync_to_async(record_action)(a, b.id, "like")
    assert first.matched is False
    assert await ca.receive_nothing(timeout=0.1)

    second = await database_sync_to_async(record_action)(b, a.id, "like")
    assert second.matched is True

    assert await ca.receive_json_from(timeout=2) == {
        "type": "new-match",
        "payload": {"userId": b.id},
    }
    assert await cb.receive_json_from(timeout=2) == {
        "type": "new-match",
        "payload": {"userId": a.id},
    }

    await ca.disconnect()
    await cb.disconnect()


async def test_call_request_accept_ice_and_hang_up(presence, tracker):
    a, b = await acreate_user("Alice"), await acreate_user("Bob")
    ca = await online(a, presence, tracker)
    cb = await online(b, presence, tracker)
    channel = f"call_{min(a.id, b.id)}_{max(a.id, b.id)}"

    await ca.send_json_to(
        {"type": "call-request", "payload": {"targetId": b.id, "offer": {"sdp": "o"}}}
    )
    incoming = await cb.receive_json_from(timeout=2)
    assert incoming == {
        "type": "incoming-call",
        "payload": {
            "callerId": a.id,
            "callerName": "Alice",
            "channel": channel,
            "offer": {"sdp": "o"},
        },
    }
    assert tracker.state(channel).value == "requested"

    await cb.send_json_to({"type": "call-accepted", "payload": {"callerId": a.id}})
    answered = await ca.receive_json_from(timeout=2)
    assert answered["type"] == "call-answered"
    assert answered["payload"] == {"accepterId": b.id, "channel": channel}

    candidate = {"candidate": "candidate:1 1 UDP 2122252543 10.0.0.1 5000 typ host"}
    await ca.send_json_to(
        {"type": "ice-candidate", "payload": {"targetId": b.id, "candidate": candidate}}
    )
    relayed = await cb.receive_json_from(timeout=2)
    assert relayed == {
        "type": "ice-candidate",
        "payload": {"fromUserId": a.id, "candidate": candidate},
    }
    assert tracker.state(channel).value == "active"

    await cb.send_json_to({"type": "call-ended", "payload": {"targetId": a.id}})
    ended = await ca.receive_json_from(timeout=2)
    assert ended["type"] == "call-ended"
    assert ended["payload"]["fromUserId"] == b.id
    assert tracker.state(channel).value == "idle"

    await ca.disconnect()
    await cb.disconnect()


async def test_call_rejected_is_relayed_to_caller(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    ca = await online(a, presence, tracker)
    cb = await online(b, presence, tracker)

    await ca.send_json_to({"type": "call-request", "payload": {"targetId": b.id}})
    await cb.receive_json_from(timeout=2)
    await cb.send_json_to({"type": "call-rejected", "payload": {"callerId": a.id}})

    rejected = await ca.receive_json_from(timeout=2)
    assert rejected["type"] == "call-rejected"
    assert rejected["payload"]["rejecterId"] == b.id
    assert len(tracker) == 0

    await ca.disconnect()
    await cb.disconnect()


async def test_call_request_to_offline_user_is_dropped(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    ca = await online(a, presence, tracker)

    await ca.send_json_to({"type": "call-request", "payload": {"targetId": b.id}})

    assert await ca.receive_nothing(timeout=0.2)
    # an undelivered request is not a call attempt
    assert len(tracker) == 0

    # b comes online later and answers a request it never got
    cb = await online(b, presence, tracker)
    await cb.send_json_to({"type": "call-accepted", "payload": {"callerId": a.id}})
    assert (await ca.receive_json_from(timeout=2))["type"] == "call-answered"
    assert len(tracker) == 0

    await ca.disconnect()
    await cb.disconnect()


async def test_caller_disconnect_mid_call_drops_later_signals(presence, tracker):
    a, b = await acreate_user("A"), await acreate_user("B")
    ca = await online(a, presence, tracker)
    cb = await online(b, presence, tracker)

    await ca.send_json_to({"type": "call-request", "payload": {"targetId": b.id}})
    assert (await cb.receive_json_from(timeout=2))["type"] == "incoming-call"

    await ca.disconnect()
    assert presence.lookup(a.id) is None
    assert len(tracker) == 0

    # b answers into the void; nothing comes back, no error frame
    await cb.send_json_to({"type": "call-accepted", "payload": {"callerId": a.id}})
    assert await cb.receive_nothing(timeout=0.2)
    await cb.disconnect()
