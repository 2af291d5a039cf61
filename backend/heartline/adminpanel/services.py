# heartline/adminpanel/services.py
import logging

from django.conf import settings
from django.core.paginator import Paginator

from heartline.common.exceptions import DomainError, NotFoundError
from heartline.users.models import User
from heartline.users.services import delete_account

from .models import AdminSetting

logger = logging.getLogger(__name__)

VIDEO_SETTINGS_KEY = "video"
DEFAULT_TOKEN_EXPIRATION_SEC = 3600


def save_setting(key: str, value) -> AdminSetting:
    setting, _ = AdminSetting.objects.update_or_create(key=key, defaults={"value": value})
    logger.info("admin setting %r updated", key)
    return setting


def get_setting(key: str):
    setting = AdminSetting.objects.filter(key=key).first()
    return setting.value if setting else None


def get_setting_row(key: str):
    return AdminSetting.objects.filter(key=key).first()


# ---- user management ----


class CannotDeleteSelf(DomainError):
    status_code = 400
    default_code = "CANNOT_DELETE_SELF"
    default_detail = "You cannot delete your own admin account"


def _admin_user_queryset():
    return User.objects.select_related("profile").prefetch_related("photos")


def list_users(page_number=None) -> dict:
    """최신 가입순, ADMIN_PAGE_SIZE 씩. 범위 밖 page 는 마지막 페이지."""
    qs = _admin_user_queryset().order_by("-date_joined", "-id")
    page = Paginator(qs, settings.ADMIN_PAGE_SIZE).get_page(page_number)
    return {
        "items": list(page.object_list),
        "page": page.number,
        "totalPages": page.paginator.num_pages,
        "total": page.paginator.count,
    }


def get_user(user_id) -> User:
    user = _admin_user_queryset().filter(id=user_id).first()
    if not user:
        raise NotFoundError("user not found", code="USER_NOT_FOUND")
    return user


def delete_user(admin: User, user_id) -> None:
    user = get_user(user_id)
    if user.id == admin.id:
        raise CannotDeleteSelf()
    delete_account(user)
    logger.info("admin %s deleted user %s", admin.id, user_id)
