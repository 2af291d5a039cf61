# heartline/adminpanel/serializers.py
from rest_framework import serializers

from heartline.matches.models import MatchAction
from heartline.users.models import User
from heartline.users.serializers import UserMeSerializer


class AdminUserSerializer(UserMeSerializer):
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta(UserMeSerializer.Meta):
        fields = UserMeSerializer.Meta.fields + ["createdAt"]


class AdminUserDetailSerializer(AdminUserSerializer):
    """목록 + 이 유저가 한/받은 스와이프."""

    actionsMade = serializers.SerializerMethodField()
    actionsReceived = serializers.SerializerMethodField()

    class Meta(AdminUserSerializer.Meta):
        fields = AdminUserSerializer.Meta.fields + ["actionsMade", "actionsReceived"]

    def get_actionsMade(self, obj: User):
        return [
            {"userId": target_id, "action": action}
            for target_id, action in MatchAction.objects.filter(actor=obj)
            .order_by("id")
            .values_list("target_id", "action")
        ]

    def get_actionsReceived(self, obj: User):
        return [
            {"userId": actor_id, "action": action}
            for actor_id, action in MatchAction.objects.filter(target=obj)
            .order_by("id")
            .values_list("actor_id", "action")
        ]


class AdminUserUpdateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(required=False)
    age = serializers.IntegerField(min_value=18, required=False)
    isAdmin = serializers.BooleanField(source="is_staff", required=False)
    isOnline = serializers.BooleanField(source="is_online", required=False)

    class Meta:
        model = User
        fields = ["name", "email", "age", "isAdmin", "isOnline"]

    def validate_email(self, value):
        email = value.strip().lower()
        taken = User.objects.filter(email=email).exclude(id=self.instance.id)
        if taken.exists():
            raise serializers.ValidationError("email already exists")
        return email
