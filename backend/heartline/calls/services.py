# heartline/calls/services.py
import base64
import hashlib
import hmac
import time

from heartline.adminpanel.services import (
    DEFAULT_TOKEN_EXPIRATION_SEC,
    VIDEO_SETTINGS_KEY,
    get_setting,
)
from heartline.common.exceptions import DomainError, ValidationError


class VideoNotConfigured(DomainError):
    status_code = 400
    default_code = "VIDEO_NOT_CONFIGURED"
    default_detail = "Video calling is not configured. Please contact admin."


def _sign(certificate: str, channel_name: str, uid, expires_at: int) -> str:
    msg = f"{channel_name}:{uid}:{expires_at}".encode("utf-8")
    digest = hmac.new(certificate.encode("utf-8"), msg, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def issue_video_token(channel_name, uid, *, now=None) -> dict:
    """
    영상 통화 채널 입장용 토큰. 관리자 설정(appId/appCertificate)이 있어야 함.
    토큰 = HMAC-SHA256(certificate, "channel:uid:expiresAt").

    Agora RTC AccessToken 포맷이 아님. 자체 서명 토큰이라 Agora 서버는 이걸
    검증하지 못함 (클라이언트가 채널 입장 권한 확인용으로만 씀).
    """
    if not channel_name:
        raise ValidationError(
            "Channel name is required", fields={"channelName": "required"}
        )

    settings_value = get_setting(VIDEO_SETTINGS_KEY)
    if not settings_value or not settings_value.get("appCertificate"):
        raise VideoNotConfigured()

    ttl = int(settings_value.get("tokenExpirationTime") or DEFAULT_TOKEN_EXPIRATION_SEC)
    now = int(now if now is not None else time.time())
    expires_at = now + ttl

    return {
        "appId": settings_value.get("appId"),
        "token": _sign(settings_value["appCertificate"], channel_name, uid, expires_at),
        "channelName": channel_name,
        "uid": uid,
        "expirationTime": expires_at,
    }
