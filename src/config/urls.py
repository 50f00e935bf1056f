from django.urls import include, path

urlpatterns = [
    path("", include("fuel_stop_planner.urls")),
]
