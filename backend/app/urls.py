from django.http import JsonResponse
from django.urls import include, path
from modules.core.urls import health_urlpatterns
from modules.monitoring.urls import badge_urlpatterns


def home(_):
    return JsonResponse({"service": "uptimely", "api": "/api/"})


urlpatterns = (
    health_urlpatterns()
    + badge_urlpatterns
    + [
        path("api/", include("modules.monitoring.urls")),
        path("", home, name="home"),
    ]
)
