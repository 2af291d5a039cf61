# heartline/config/asgi.py
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "heartline.config.settings")

django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402

from heartline.common.db import ensure_database  # noqa: E402
from heartline.config.jwt_auth_middleware import JwtAuthMiddlewareStack  # noqa: E402
import heartline.realtime.routing  # noqa: E402

# DB 안 붙으면 여기서 죽어야 함 (연결 받기 전에)
ensure_database()

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": JwtAuthMiddlewareStack(
            URLRouter(heartline.realtime.routing.websocket_urlpatterns)
        ),
    }
)
