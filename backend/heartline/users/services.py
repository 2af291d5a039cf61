# heartline/users/services.py
import logging

from django.db import transaction

from heartline.common.exceptions import NotFoundError
from heartline.realtime.apps import get_call_tracker, get_presence_registry
from .models import Photo, Profile, User

logger = logging.getLogger(__name__)


def get_profile(user: User) -> Profile:
    profile, _ = Profile.objects.get_or_create(user=user)
    return profile


def _own_photo(user: User, photo_id) -> Photo:
    # 남의 사진은 404 (존재 자체를 숨김)
    photo = Photo.objects.filter(id=photo_id, user=user).first()
    if not photo:
        raise NotFoundError("photo not found", code="PHOTO_NOT_FOUND")
    return photo


@transaction.atomic
def add_photo(user: User, image) -> Photo:
    """첫 사진은 자동으로 대표 사진."""
    has_any = Photo.objects.filter(user=user).exists()
    photo = Photo.objects.create(user=user, image=image, is_primary=not has_any)
    logger.info("user %s uploaded photo %s", user.id, photo.id)
    return photo


@transaction.atomic
def set_primary_photo(user: User, photo_id) -> Photo:
    photo = _own_photo(user, photo_id)
    Photo.objects.filter(user=user, is_primary=True).exclude(id=photo.id).update(
        is_primary=False
    )
    if not photo.is_primary:
        photo.is_primary = True
        photo.save(update_fields=["is_primary"])
    return photo


def delete_account(user: User) -> None:
    """
    탈퇴/관리자 삭제 공통. profile/photos/match/message 는 cascade 로 지워지고,
    사진 파일은 커밋 후에 스토리지에서 삭제. 열린 소켓이 있으면 presence 에서
    빼서 더 이상 이벤트가 가지 않게 함.
    """
    user_id = user.id
    files = [(p.image.storage, p.image.name) for p in user.photos.all() if p.image]

    with transaction.atomic():
        user.delete()

        def _remove_files():
            for storage, name in files:
                storage.delete(name)

        transaction.on_commit(_remove_files)

    get_presence_registry().clear(user_id)
    get_call_tracker().end_calls_for(user_id)
    logger.info("user %s deleted (%s photo files)", user_id, len(files))


@transaction.atomic
def delete_photo(user: User, photo_id) -> None:
    photo = _own_photo(user, photo_id)
    was_primary = photo.is_primary
    photo.image.delete(save=False)
    photo.delete()

    if was_primary:
        # 가장 최근 사진을 대표로 승격
        newest = Photo.objects.filter(user=user).order_by("-created_at", "-id").first()
        if newest:
            newest.is_primary = True
            newest.save(update_fields=["is_primary"])
