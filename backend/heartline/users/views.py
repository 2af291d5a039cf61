# heartline/users/views.py

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from heartline.common.responses import ok
from .serializers import (
    PhotoSerializer,
    PhotoUploadSerializer,
    ProfileSerializer,
    UserMeSerializer,
    UserUpdateSerializer,
)
from .services import (
    add_photo,
    delete_account,
    delete_photo,
    get_profile,
    set_primary_photo,
)


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return ok(UserMeSerializer(request.user).data)

    def put(self, request):
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return ok(UserMeSerializer(request.user).data)

    def delete(self, request):
        delete_account(request.user)
        return ok(None)


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return ok(ProfileSerializer(get_profile(request.user)).data)

    def put(self, request):
        profile = get_profile(request.user)
        serializer = ProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return ok(serializer.data)


class PhotoUploadView(APIView):
    permission_classes = [IsAuthenticated]

    # POST /api/users/me/photos (form-data: photo)
    def post(self, request):
        serializer = PhotoUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        photo = add_photo(request.user, serializer.validated_data["photo"])
        return ok({"photoId": photo.id, "photoUrl": photo.url}, http_status=201)


class PhotoDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, photo_id: int):
        delete_photo(request.user, photo_id)
        return ok(None)


class PhotoPrimaryView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, photo_id: int):
        photo = set_primary_photo(request.user, photo_id)
        return ok(PhotoSerializer(photo).data)
