# heartline/matches/services.py
import logging
from dataclasses import dataclass
from functools import partial
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Prefetch, Q

from heartline.common.exceptions import NotFoundError, ValidationError
from heartline.realtime.apps import get_presence_registry
from heartline.realtime.delivery import deliver_to_user
from heartline.users.models import Photo, Profile, User
from .models import MatchAction

logger = logging.getLogger(__name__)

ACTIONS = (MatchAction.LIKE, MatchAction.PASS)


@dataclass(frozen=True)
class SwipeResult:
    # matched: 지금 서로 like 상태인지 / created: 이번 스와이프로 새로 성사됐는지
    matched: bool
    created: bool


def _user_id(user_or_id) -> int:
    return user_or_id.id if isinstance(user_or_id, User) else int(user_or_id)


def record_action(actor: User, target_id, action: str) -> SwipeResult:
    """
    actor -> target 스와이프 저장 (같은 쌍은 덮어씀, last write wins).

    upsert 와 상대방 like 확인을 한 트랜잭션 안에서 처리하고, 두 유저 row 를
    id 순서로 잠가서 같은 쌍에 대한 동시 스와이프를 직렬화함. 그래야 서로
    동시에 like 해도 new-match 알림이 빠지지 않음.
    """
    if action not in ACTIONS:
        raise ValidationError(
            "action must be like or pass", fields={"action": "must be like or pass"}
        )
    try:
        target_id = int(target_id)
    except (TypeError, ValueError):
        raise ValidationError(
            "targetUserId must be an integer", fields={"targetUserId": "invalid"}
        )
    if target_id == actor.id:
        raise ValidationError(
            "cannot swipe on yourself", fields={"targetUserId": "cannot be yourself"}
        )

    with transaction.atomic():
        locked = list(
            User.objects.select_for_update()
            .filter(id__in=[actor.id, target_id])
            .order_by("id")
            .values_list("id", flat=True)
        )
        if target_id not in locked:
            raise NotFoundError("target user not found", code="USER_NOT_FOUND")

        prior = (
            MatchAction.objects.filter(actor=actor, target_id=target_id)
            .values_list("action", flat=True)
            .first()
        )
        MatchAction.objects.update_or_create(
            actor=actor, target_id=target_id, defaults={"action": action}
        )

        matched = (
            action == MatchAction.LIKE
            and MatchAction.objects.filter(
                actor_id=target_id, target=actor, action=MatchAction.LIKE
            ).exists()
        )
        created = matched and prior != MatchAction.LIKE

        if created:
            logger.info("new match between %s and %s", actor.id, target_id)
            transaction.on_commit(partial(notify_new_match, actor.id, target_id))

    return SwipeResult(matched=matched, created=created)


def notify_new_match(user_a_id: int, user_b_id: int, presence=None) -> None:
    # 둘 중 접속 안 한 쪽은 그냥 스킵 (다음에 /matches 로 보게 됨)
    deliver_to_user(user_a_id, "new-match", {"userId": user_b_id}, presence=presence)
    deliver_to_user(user_b_id, "new-match", {"userId": user_a_id}, presence=presence)


def is_mutual_match(a, b) -> bool:
    a_id, b_id = _user_id(a), _user_id(b)
    if a_id == b_id:
        return False
    return (
        MatchAction.objects.filter(
            Q(actor_id=a_id, target_id=b_id) | Q(actor_id=b_id, target_id=a_id),
            action=MatchAction.LIKE,
        ).count()
        == 2
    )


def _with_card_relations(qs):
    return qs.select_related("profile").prefetch_related(
        Prefetch(
            "photos",
            queryset=Photo.objects.filter(is_primary=True),
            to_attr="primary_photos",
        )
    )


def user_card(user: User, *, online: bool) -> dict:
    profile = getattr(user, "profile", None)
    primary = user.primary_photos[0] if getattr(user, "primary_photos", None) else None
    return {
        "userId": user.id,
        "name": user.name,
        "age": user.age,
        "profile": (
            {
                "bio": profile.bio,
                "gender": profile.gender,
                "location": profile.location,
                "interests": profile.interests,
            }
            if profile
            else None
        ),
        "primaryPhoto": primary.url if primary else None,
        "isOnline": online,
    }


def mutual_match_queryset(user):
    user_id = _user_id(user)
    liked_by_me = MatchAction.objects.filter(
        actor_id=user_id, action=MatchAction.LIKE
    ).values("target_id")
    liked_me = MatchAction.objects.filter(
        target_id=user_id, action=MatchAction.LIKE
    ).values("actor_id")
    return User.objects.filter(id__in=liked_by_me).filter(id__in=liked_me)


def list_mutual_matches(user, presence=None) -> List[dict]:
    """온라인 여부는 저장값이 아니라 presence registry 를 조회 시점에 확인."""
    presence = presence if presence is not None else get_presence_registry()
    users = _with_card_relations(mutual_match_queryset(user)).order_by("id")
    return [user_card(u, online=presence.is_online(u.id)) for u in users]


def _candidate_preferences(user: User, filters: Optional[dict]) -> dict:
    prefs = {
        "gender": None,
        "age_min": settings.DEFAULT_AGE_MIN,
        "age_max": settings.DEFAULT_AGE_MAX,
    }
    profile = Profile.objects.filter(user=user).first()
    if profile and isinstance(profile.preferences, dict):
        prefs.update(
            {k: v for k, v in profile.preferences.items() if k in prefs and v is not None}
        )
    if filters:
        prefs.update({k: v for k, v in filters.items() if k in prefs and v is not None})
    return prefs


def list_candidates(user: User, filters: Optional[dict] = None, presence=None) -> List[dict]:
    """
    discover 후보. 제외: 나 자신, 내가 이미 스와이프한 사람, 선호 조건(성별/나이) 밖.
    id 순 정렬, DISCOVER_PAGE_SIZE 개까지.
    """
    presence = presence if presence is not None else get_presence_registry()
    prefs = _candidate_preferences(user, filters)

    already_swiped = MatchAction.objects.filter(actor=user).values("target_id")
    qs = (
        User.objects.filter(is_active=True)
        .exclude(id=user.id)
        .exclude(id__in=already_swiped)
        .filter(age__gte=prefs["age_min"], age__lte=prefs["age_max"])
    )
    if prefs["gender"]:
        qs = qs.filter(profile__gender=prefs["gender"])

    users = _with_card_relations(qs).order_by("id")[: settings.DISCOVER_PAGE_SIZE]
    return [user_card(u, online=presence.is_online(u.id)) for u in users]
