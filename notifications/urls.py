from django.urls import path

from .views import (
    NotificationListView,
    NotificationMarkReadView,
    RegisterPushTokenView,
    SendNotificationView,
)


urlpatterns = [
    path("", NotificationListView.as_view(), name="notifications-list"),
    path("send/", SendNotificationView.as_view(), name="notifications-send"),
    path("register/", RegisterPushTokenView.as_view(), name="notifications-register"),
    path("mark-read/", NotificationMarkReadView.as_view(), name="notifications-mark-read"),
]
