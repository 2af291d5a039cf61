# heartline/config/urls.py
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/", include("heartline.authentication.urls")),
    path("api/users/", include("heartline.users.urls")),
    path("api/", include("heartline.matches.urls")),  # /discover, /swipe, /matches
    path("api/", include("heartline.chat.urls")),  # /messages/...
    path("api/calls/", include("heartline.calls.urls")),
    path("api/admin/", include("heartline.adminpanel.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
