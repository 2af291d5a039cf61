# heartline/matches/views.py
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from heartline.common.exceptions import ValidationError
from heartline.common.responses import ok
from heartline.users.models import Profile
from .models import MatchAction
from .services import list_candidates, list_mutual_matches, record_action


def _int_param(request, name):
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", fields={name: "invalid"})


class DiscoverView(APIView):
    permission_classes = [IsAuthenticated]

    # GET /api/discover?gender=female&ageMin=20&ageMax=30
    def get(self, request):
        gender = request.query_params.get("gender") or None
        if gender and gender not in dict(Profile.GENDER_CHOICES):
            raise ValidationError("unknown gender", fields={"gender": "invalid"})

        filters = {
            "gender": gender,
            "age_min": _int_param(request, "ageMin"),
            "age_max": _int_param(request, "ageMax"),
        }
        return ok(list_candidates(request.user, filters))


class SwipeView(APIView):
    permission_classes = [IsAuthenticated]

    # POST /api/swipe  body: { "targetUserId": 42, "action": "like" }
    def post(self, request):
        result = record_action(
            request.user,
            request.data.get("targetUserId"),
            request.data.get("action"),
        )
        return ok({"match": result.matched})


class _FixedActionView(APIView):
    permission_classes = [IsAuthenticated]
    swipe_action = None

    def post(self, request, user_id: int):
        result = record_action(request.user, user_id, self.swipe_action)
        return ok({"match": result.matched})


class LikeView(_FixedActionView):
    swipe_action = MatchAction.LIKE


class PassView(_FixedActionView):
    swipe_action = MatchAction.PASS


class MatchListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return ok(list_mutual_matches(request.user))
