# heartline/authentication/views.py
from rest_framework.views import APIView

from heartline.common.responses import ok
from heartline.users.serializers import UserMeSerializer
from .services import authenticate_credentials, issue_jwt_for_user, register_user


def _token_payload(user):
    return {
        "accessToken": issue_jwt_for_user(user),
        "tokenType": "Bearer",
        "user": UserMeSerializer(user).data,
    }


class RegisterView(APIView):
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        user = register_user(
            email=request.data.get("email"),
            password=request.data.get("password"),
            name=request.data.get("name"),
            age=request.data.get("age"),
            bio=request.data.get("bio") or "",
        )
        return ok(_token_payload(user), http_status=201)


class LoginView(APIView):
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        user = authenticate_credentials(
            request.data.get("email"), request.data.get("password")
        )
        return ok(_token_payload(user))
