# heartline/realtime/routing.py
from django.urls import re_path

from .apps import get_call_tracker, get_presence_registry
from .consumers import GatewayConsumer

websocket_urlpatterns = [
    re_path(
        r"^ws/realtime/?$",
        GatewayConsumer.as_asgi(
            presence=get_presence_registry(), calls=get_call_tracker()
        ),
    ),
]
