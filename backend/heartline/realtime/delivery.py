# heartline/realtime/delivery.py
"""
Point-to-point delivery of server events to one user's live connection.

Events travel over the channel layer as {"type": "relay.event", "event": ...,
"payload": ...}; GatewayConsumer.relay_event turns them into
{"type": <event>, "payload": <payload>} frames on the socket.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .apps import get_presence_registry

logger = logging.getLogger(__name__)

RELAY_TYPE = "relay.event"


def relay_message(event: str, payload=None) -> dict:
    return {"type": RELAY_TYPE, "event": event, "payload": payload}


async def adeliver_to_user(user_id, event: str, payload=None, *, presence=None) -> bool:
    """Returns False (and sends nothing) when the user has no live connection."""
    presence = presence if presence is not None else get_presence_registry()
    handle = presence.lookup(user_id)
    if handle is None:
        logger.debug("drop %s for user %s: not connected", event, user_id)
        return False

    await get_channel_layer().send(handle, relay_message(event, payload))
    return True


def deliver_to_user(user_id, event: str, payload=None, *, presence=None) -> bool:
    return async_to_sync(adeliver_to_user)(user_id, event, payload, presence=presence)


def broadcast_to_group(group: str, event: str, payload=None) -> None:
    async_to_sync(get_channel_layer().group_send)(group, relay_message(event, payload))


def chat_group_name(conv_id: str) -> str:
    return f"chat_{conv_id}"
