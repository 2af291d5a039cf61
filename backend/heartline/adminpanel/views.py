# heartline/adminpanel/views.py
import logging

from rest_framework.permissions import IsAdminUser
from rest_framework.views import APIView

from heartline.common.exceptions import ValidationError
from heartline.common.responses import ok
from .serializers import (
    AdminUserDetailSerializer,
    AdminUserSerializer,
    AdminUserUpdateSerializer,
)
from .services import (
    DEFAULT_TOKEN_EXPIRATION_SEC,
    VIDEO_SETTINGS_KEY,
    delete_user,
    get_setting_row,
    get_user,
    list_users,
    save_setting,
)

logger = logging.getLogger(__name__)


class VideoSettingsView(APIView):
    """
    GET/POST /api/admin/video-settings  (is_staff 만)
    body: { "appId": "...", "appCertificate": "...", "tokenExpirationTime": 3600 }
    """

    permission_classes = [IsAdminUser]

    def get(self, request):
        row = get_setting_row(VIDEO_SETTINGS_KEY)
        if not row:
            return ok({"configured": False})

        # certificate 는 절대 응답에 안 실음
        return ok(
            {
                "configured": True,
                "appId": row.value.get("appId"),
                "tokenExpirationTime": row.value.get("tokenExpirationTime"),
                "updatedAt": row.updated_at.isoformat(),
            }
        )

    def post(self, request):
        app_id = request.data.get("appId")
        certificate = request.data.get("appCertificate")
        if not app_id or not certificate:
            raise ValidationError(
                "App ID and App Certificate are required",
                fields={
                    k: "required"
                    for k, v in (("appId", app_id), ("appCertificate", certificate))
                    if not v
                },
            )

        expiration = request.data.get("tokenExpirationTime") or DEFAULT_TOKEN_EXPIRATION_SEC
        try:
            expiration = int(expiration)
        except (TypeError, ValueError):
            raise ValidationError(
                "tokenExpirationTime must be an integer",
                fields={"tokenExpirationTime": "invalid"},
            )
        if expiration <= 0:
            raise ValidationError(
                "tokenExpirationTime must be positive",
                fields={"tokenExpirationTime": "invalid"},
            )

        save_setting(
            VIDEO_SETTINGS_KEY,
            {
                "appId": app_id,
                "appCertificate": certificate,
                "tokenExpirationTime": expiration,
            },
        )
        return ok({"configured": True})


class AdminUserListView(APIView):
    permission_classes = [IsAdminUser]

    # GET /api/admin/users?page=2
    def get(self, request):
        result = list_users(request.query_params.get("page"))
        result["items"] = AdminUserSerializer(result["items"], many=True).data
        return ok(result)


class AdminUserDetailView(APIView):
    """GET/PUT/DELETE /api/admin/users/<id>"""

    permission_classes = [IsAdminUser]

    def get(self, request, user_id: int):
        return ok(AdminUserDetailSerializer(get_user(user_id)).data)

    def put(self, request, user_id: int):
        user = get_user(user_id)
        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(
            "admin %s updated user %s: %s",
            request.user.id,
            user.id,
            sorted(serializer.validated_data),
        )
        return ok(AdminUserSerializer(user).data)

    def delete(self, request, user_id: int):
        delete_user(request.user, user_id)
        return ok(None)
