# heartline/authentication/services.py
import logging

from django.db import transaction
from rest_framework_simplejwt.tokens import AccessToken

from heartline.common.exceptions import DomainError, ValidationError
from heartline.users.models import Profile, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class EmailAlreadyUsed(DomainError):
    status_code = 409
    default_code = "EMAIL_ALREADY_USED"
    default_detail = "email already exists"


class InvalidCredentials(DomainError):
    status_code = 400
    default_code = "INVALID_CREDENTIALS"
    default_detail = "Invalid credentials"


def _normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


@transaction.atomic
def register_user(*, email, password, name, age, bio="") -> User:
    fields = {}
    if not email:
        fields["email"] = "required"
    if not password or len(str(password)) < MIN_PASSWORD_LENGTH:
        fields["password"] = f"at least {MIN_PASSWORD_LENGTH} characters"
    if not name:
        fields["name"] = "required"
    try:
        age = int(age)
        if age < 18:
            fields["age"] = "must be 18 or older"
    except (TypeError, ValueError):
        fields["age"] = "must be an integer"
    if fields:
        raise ValidationError("missing or invalid fields", fields=fields)

    email = _normalize_email(email)
    if User.objects.filter(email=email).exists():
        raise EmailAlreadyUsed()

    user = User.objects.create_user(email=email, password=password, name=name, age=age)
    Profile.objects.create(user=user, bio=bio or "")
    logger.info("registered user %s", user.id)
    return user


def authenticate_credentials(email, password) -> User:
    user = User.objects.filter(email=_normalize_email(email), is_active=True).first()
    if not user or not user.check_password(password or ""):
        raise InvalidCredentials()
    return user


def issue_jwt_for_user(user: User) -> str:
    token = AccessToken.for_user(user)
    return str(token)
