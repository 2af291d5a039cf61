# heartline/users/models.py
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("email must be set")

        email = self.normalize_email(str(email).strip()).lower()
        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password=password, **extra_fields)


class User(AbstractUser):
    # username 대신 email 로 로그인
    username = None
    first_name = None
    last_name = None

    email = models.EmailField(unique=True)

    name = models.CharField(max_length=100)
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    # realtime 연결/해제 시 토글 (matches 목록의 온라인 표시는 presence registry 기준)
    is_online = models.BooleanField(default=False)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    def __str__(self):
        return f"{self.id} {self.email}"


class Profile(models.Model):
    GENDER_CHOICES = (
        ("male", "male"),
        ("female", "female"),
        ("other", "other"),
    )

    user = models.OneToOneField(
        User, related_name="profile", on_delete=models.CASCADE
    )
    bio = models.TextField(blank=True, default="")
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    interests = models.JSONField(default=list, blank=True)
    # {"gender": "female", "age_min": 20, "age_max": 35}
    preferences = models.JSONField(default=dict, blank=True)

    def __str__(self):
        return f"profile of {self.user_id}"


class Photo(models.Model):
    user = models.ForeignKey(User, related_name="photos", on_delete=models.CASCADE)
    image = models.ImageField(upload_to="photos/")
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    @property
    def url(self) -> str:
        return self.image.url if self.image else ""
