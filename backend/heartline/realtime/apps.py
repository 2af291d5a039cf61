from django.apps import AppConfig, apps


class RealtimeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "heartline.realtime"
    label = "realtime"

    def ready(self):
        from heartline.calls.signaling import CallTracker
        from .presence import PresenceRegistry

        # 프로세스 수명 = registry 수명 (gateway 에는 as_asgi 로 주입)
        self.presence = PresenceRegistry()
        self.calls = CallTracker()


def get_presence_registry():
    return apps.get_app_config("realtime").presence


def get_call_tracker():
    return apps.get_app_config("realtime").calls
