# heartline/calls/views.py
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from heartline.common.exceptions import AuthorizationError, ValidationError
from heartline.common.responses import ok
from .services import issue_video_token
from .signaling import channel_participants


class CallTokenView(APIView):
    """
    POST /api/calls/token
    body: { "channelName": "call_3_17", "uid": 3 }

    Returns an HMAC-signed channel token, not an Agora RTC token.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        channel_name = request.data.get("channelName")
        if channel_name:
            participants = channel_participants(channel_name)
            if participants is None:
                raise ValidationError(
                    "channelName must look like call_<id>_<id>",
                    fields={"channelName": "invalid"},
                )
            if request.user.id not in participants:
                raise AuthorizationError("not a participant of this call")

        uid = request.data.get("uid") or request.user.id
        return ok(issue_video_token(channel_name, uid))
