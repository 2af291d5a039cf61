# heartline/users/serializers.py
from rest_framework import serializers

from .models import Photo, Profile, User


class PhotoSerializer(serializers.ModelSerializer):
    photoId = serializers.IntegerField(source="id", read_only=True)
    photoUrl = serializers.CharField(source="url", read_only=True)
    isPrimary = serializers.BooleanField(source="is_primary", read_only=True)

    class Meta:
        model = Photo
        fields = ["photoId", "photoUrl", "isPrimary"]


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ["bio", "gender", "location", "interests", "preferences"]

    def validate_interests(self, value):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise serializers.ValidationError("interests must be a list of strings")
        return value

    def validate_preferences(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("preferences must be an object")

        gender = value.get("gender")
        if gender and gender not in dict(Profile.GENDER_CHOICES):
            raise serializers.ValidationError("unknown gender")

        age_min = value.get("age_min")
        age_max = value.get("age_max")
        for v in (age_min, age_max):
            if v is not None and not isinstance(v, int):
                raise serializers.ValidationError("age_min/age_max must be integers")
        if age_min is not None and age_max is not None and age_min > age_max:
            raise serializers.ValidationError("age_min must be <= age_max")
        return value


class UserMeSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="id", read_only=True)
    isOnline = serializers.BooleanField(source="is_online", read_only=True)
    isAdmin = serializers.BooleanField(source="is_staff", read_only=True)
    profile = serializers.SerializerMethodField()
    photos = PhotoSerializer(many=True, read_only=True)

    class Meta:
        model = User
        fields = [
            "userId",
            "email",
            "name",
            "age",
            "isOnline",
            "isAdmin",
            "profile",
            "photos",
        ]

    def get_profile(self, obj: User):
        profile = getattr(obj, "profile", None)
        if profile is None:
            return None
        return ProfileSerializer(profile).data


class UserUpdateSerializer(serializers.ModelSerializer):
    age = serializers.IntegerField(min_value=18, max_value=120, required=False)

    class Meta:
        model = User
        fields = ["name", "age"]


class PhotoUploadSerializer(serializers.Serializer):
    # Pillow 로 실제 이미지인지 검증됨
    photo = serializers.ImageField()
